"""
Main entry point for the FV-1 Assembly Language Server.

This file is executed when running: python -m fv1ls
"""
from fv1ls.main import main

if __name__ == "__main__":
    main()
