"""Error handling: NotFound, AlreadyExists, InvalidArgument and friends.

Demonstrates the normalized error hierarchy and how to handle errors
programmatically using structured attributes and error kinds.
"""

from __future__ import annotations

import tempfile

from filehandler import (
    AlreadyExists,
    FileHandlerError,
    HandlerConfig,
    InvalidArgument,
    InvalidConfig,
    NotFound,
    Registry,
    RegistryConfig,
)

if __name__ == "__main__":
    with tempfile.TemporaryDirectory() as tmp:
        config = RegistryConfig(
            handlers={
                "files": HandlerConfig(type="local", options={"root": tmp}),
                "broken": HandlerConfig(type="ftp", options={"url": "http://not-ftp.example.com"}),
            }
        )

        with Registry(config) as registry:
            handler = registry.get_handler("files")

            # --- NotFound ---
            try:
                handler.lookup("nonexistent.txt")
            except NotFound as exc:
                print(f"NotFound: {exc}")
                print(f"  path={exc.path}, backend={exc.backend}, kind={exc.kind.value}")

            # --- AlreadyExists ---
            handler.upload(b"a", "a.txt")
            handler.upload(b"b", "b.txt")
            try:
                handler.move("a.txt", "b.txt")
            except AlreadyExists as exc:
                print(f"\nAlreadyExists: {exc}")

            # --- InvalidArgument (empty content, blank names, traversal) ---
            for call in (
                lambda: handler.upload(b"", "empty.txt"),
                lambda: handler.create_directory("  "),
                lambda: handler.path_exists("../../etc/passwd"),
            ):
                try:
                    call()
                except InvalidArgument as exc:
                    print(f"\nInvalidArgument: {exc}")

            # --- InvalidConfig from a bad handler definition ---
            try:
                registry.get_handler("broken")
            except InvalidConfig as exc:
                print(f"\nInvalidConfig: {exc}")

            # --- Catch any filehandler error with the base class ---
            for path in ["missing.txt", "also/missing.txt"]:
                try:
                    handler.delete(path)
                except FileHandlerError as exc:
                    print(f"\nFileHandlerError ({type(exc).__name__}): {exc}")

            # --- KeyError for unknown handler names ---
            try:
                registry.get_handler("unknown")
            except KeyError as exc:
                print(f"\nKeyError: {exc}")

    print("\nDone!")
