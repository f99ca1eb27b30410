"""gRPC transport layer for the board service.

This package hosts:
- The protocol buffer definition (in `protos/`), compiled at import time
  into the modules exposed by `generated`.
- Server bootstrap and interceptors.
- Thin service adapters that map gRPC requests to application services.
"""
