from src.cli import app

__all__ = ["main", "app"]


def main() -> None:
    """Entry point for the application."""
    app()


if __name__ == "__main__":
    main()
