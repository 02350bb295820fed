"""
Scan orchestration built on the discovery and port mapping modules
"""
