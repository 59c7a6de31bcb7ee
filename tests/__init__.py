"""Test suite for gluapack.

Test Structure:
- unit/: Unit tests per package area (core, config, packing, unpacking, utils, cli)
- integration/: Pack/unpack round trips and failure recovery on real temp dirs
- conftest.py: Addon tree factories shared by both
"""
