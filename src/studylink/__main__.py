"""Entry point for 'python -m studylink' command."""

from studylink.cli import main

if __name__ == "__main__":
    main()
