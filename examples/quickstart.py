"""Quickstart: upload, list, look up and download with a handler.

Demonstrates:
- Building a handler from a RegistryConfig
- Uploading into a directory that does not exist yet
- Listing a directory and reading file metadata
"""

from __future__ import annotations

import io
import tempfile

from filehandler import HandlerConfig, Registry, RegistryConfig

if __name__ == "__main__":
    with tempfile.TemporaryDirectory() as tmp:
        config = RegistryConfig(handlers={"files": HandlerConfig(type="local", options={"root": tmp})})

        with Registry(config) as registry:
            handler = registry.get_handler("files")

            # Missing directories are created on upload
            handler.upload(b"Hello, world!", "hello.txt", "greetings")
            print(f"File exists: {handler.path_exists('greetings/hello.txt')}")

            for entry in handler.list_directory("greetings"):
                print(f"Listed: {entry.name}")

            info = handler.lookup("hello.txt", "greetings")
            print(f"Size: {info.size} bytes, type: {info.mime_type}, modified: {info.created_at}")

            buf = io.BytesIO()
            handler.download(buf, "greetings/hello.txt")
            print(f"Content: {buf.getvalue()!r}")

    print("Done! Temp directory cleaned up automatically.")
