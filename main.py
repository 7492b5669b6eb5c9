#!/usr/bin/env python3

import sys
from pathlib import Path
sys.path.append(f"{Path(__file__).parents[0]}/src")

from listscript.__main__ import main

if __name__ == '__main__':
    main()
