"""
Module entry point for: python -m text_render

Allows running the renderer directly as a module:
    python -m text_render render -t template.pdf -c names.csv --x 100 --y 200
    python -m text_render fonts
    python -m text_render info <template>
"""

from .cli import cli


def main():
    cli()


if __name__ == "__main__":
    main()
