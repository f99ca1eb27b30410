"""Message and service modules for ``protos/board.proto``.

The proto is compiled when this package is first imported (``grpcio-tools``
must be installed). The path is resolved against ``sys.path``, so the project
root has to be importable, which holds for ``pip install -e .``, for the
entry scripts and for the test suite.
"""
import grpc


BOARD_PROTO = "grpc_app/protos/board.proto"

board_pb2, board_pb2_grpc = grpc.protos_and_services(BOARD_PROTO)

__all__ = ["board_pb2", "board_pb2_grpc", "BOARD_PROTO"]
