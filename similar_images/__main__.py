"""
Allow running the package with: python -m similar_images

Examples:
    python -m similar_images /path/to/photos    # Search a directory
    python -m similar_images config             # Show current settings
    python -m similar_images config --init      # Create example config file
"""

import sys


def show_config(argv) -> int:
    from .user_config import get_user_config

    config = get_user_config()

    if '--init' in argv:
        if config.create_example_config():
            print("✓ Created example configuration file at:")
            print(f"  {config.config_file_path}")
            print("\nEdit this file to customize Similar Images settings.")
            return 0
        print("✗ Failed to create configuration file.")
        return 1

    print(f"Configuration file: {config.config_file_path}")
    if config.config_file_path.exists():
        print("Status: ✓ Found")
    else:
        print("Status: ✗ Not found (using defaults)")
        print("\nRun 'python -m similar_images config --init' to create one.")

    print("\nCurrent settings:")
    for key, value in config.settings().items():
        print(f"  {key}: {value}")
    return 0


def main(argv=None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if argv and argv[0] == 'config':
        return show_config(argv[1:])

    from .cli import main as cli_main
    return cli_main(argv)


if __name__ == '__main__':
    sys.exit(main())
