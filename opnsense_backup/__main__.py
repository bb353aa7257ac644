"""
Main entry point for the opnsense_backup package.

Allows running the tool as: python -m opnsense_backup
"""

from opnsense_backup.cli import main

if __name__ == "__main__":
    main()
