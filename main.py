"""ROM Installer — entry point."""

from rominstaller.cli import main

if __name__ == "__main__":
    main()
