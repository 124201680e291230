"""PolyMorph - Polyglot Malware Detection for embedded and disguised binaries"""
__version__ = "0.1.0"
