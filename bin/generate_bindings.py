#!/usr/bin/env python3
"""
Lattice Binding Generator

Reads WIT worlds and generates Python provider bindings:
  1. Capability interfaces and operation dispatch for exported interfaces
  2. Invocation stubs for imported interfaces
  3. wRPC NATS subject mapping
  4. Base bindings (optional, --emit-base)

Usage:
    python generate_bindings.py samples/wit/keyvalue.wit samples/wit/bus.wit -c samples/wit/kvredis.toml -o generated/
"""

import sys
from pathlib import Path

# Add parent directory to path so the latticegen package can be found
sys.path.insert(0, str(Path(__file__).parent.parent))

from latticegen.cli import main


if __name__ == "__main__":
    sys.exit(main())
