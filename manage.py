#!/usr/bin/env python
from kmsca.__main__ import main

if __name__ == '__main__':
    main()
