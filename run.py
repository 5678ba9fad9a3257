"""
Entry Point Script (Bootstrap)
==============================
Runs spheremesh from a source checkout without installing it.

Why is this file needed?
------------------------
1. It is located outside the 'src' package to act as a convenient runner.
2. It modifies 'sys.path' so that 'from spheremesh...' resolves.

Usage:
    $ python run.py --frames 1000 --save spheres.h5
"""
import sys
import os

current_dir: str = os.path.dirname(os.path.abspath(__file__))
src_path: str = os.path.join(current_dir, 'src')
sys.path.insert(0, src_path)

from spheremesh.main import main

if __name__ == "__main__":
    sys.exit(main())
