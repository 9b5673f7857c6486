"""Ingest package - folder discovery and measurement file readers.

This package handles:
- Depth-bounded scanning of the condition folder tree
- Regex selection of folders per hierarchy level
- Assignment of leaf folders to their group (well / condition) folder
- Reading Fiji results tables (CSV / TXT)
- Reading free-text Coloc2 logs (table first, plain lines as fallback)

Key classes:
- GroupDiscovery: Scans, selects and groups folders into a GroupCatalog

Design principle:
- Readers only parse; deciding which values to keep belongs to analysis
- Nothing is written to disk
"""
