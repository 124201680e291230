#!/usr/bin/env python3
# -*- coding: UTF-8 -*-
"""
PolyMorph - Polyglot Malware Detection

Inspects an arbitrary file for disguised or embedded threats, such as a
cryptomining module hidden inside a WebAssembly binary, and prints an
explainable verdict with an aggregate 0-100 risk score.

The process exit code reflects the threat level:
0 - Clean, 1 - Low, 2 - Medium, 3 - High, 4 - Critical, 5 - Error
"""
from polymorph.main import main

if __name__ == '__main__':
    main()
