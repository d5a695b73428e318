"""Main entry point for prthreads."""

from prthreads.cli import app


def main() -> None:
    """Run the prthreads command line."""
    app()


if __name__ == "__main__":
    main()
