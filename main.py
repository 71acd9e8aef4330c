# main.py
import sys

from route_mesh.cli import main

if __name__ == "__main__":
    sys.exit(main())
