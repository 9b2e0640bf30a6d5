"""Configuration: config-as-code, from_dict(), and per-protocol handler options.

Demonstrates different ways to create and use RegistryConfig, including
option sets for the FTP and SFTP handlers.
"""

from __future__ import annotations

import json
import tempfile

from filehandler import FtpSettings, FTPHandler, HandlerConfig, MissingField, Registry, RegistryConfig

if __name__ == "__main__":
    with tempfile.TemporaryDirectory() as tmp:
        # --- Option 1: Config-as-code with Python objects ---
        config = RegistryConfig(
            handlers={
                "uploads": HandlerConfig(type="local", options={"root": f"{tmp}/uploads"}),
                "reports": HandlerConfig(type="local", options={"root": f"{tmp}/reports"}),
            },
        )

        with Registry(config) as registry:
            uploads = registry.get_handler("uploads")
            reports = registry.get_handler("reports")

            uploads.upload(b"\xff\xd8\xff\xe0fake-jpeg-data", "photo.jpg")
            reports.upload(b"revenue,profit\n100,20\n", "q4.csv")

            print("Uploads:", uploads.list_directory().names)
            print("Reports:", reports.list_directory().names)

    # --- Option 2: from_dict(), e.g. loaded from TOML or JSON ---
    raw = json.loads(
        """
        {
          "handlers": {
            "incoming": {
              "type": "ftp",
              "options": {"url": "ftp://ftp.example.com:2121/incoming", "user": "alice", "password": "secret"}
            },
            "mirror": {
              "type": "sftp",
              "options": {"host": "files.example.com", "username": "deploy", "base_path": "/srv/data",
                          "host_key_policy": "tofu"}
            }
          }
        }
        """
    )
    config = RegistryConfig.from_dict(raw)
    print(f"\nfrom_dict(): {sorted(config.handlers)}")

    # Handlers are built lazily; nothing connects until the first operation
    with Registry(config) as registry:
        print(f"incoming -> {registry.get_handler('incoming')!r}")

    # --- Option 3: settings loaded onto an existing handler ---
    handler = FTPHandler()
    handler.load_settings(FtpSettings(url="ftp://ftp.example.com/pub"))
    print(f"\nload_settings(): {handler!r}")

    # --- Settings validation: a blank URL raises MissingField ---
    try:
        FTPHandler().load_settings(FtpSettings(url=""))
    except MissingField as exc:
        print(f"\nValidation error ({exc.field}): {exc}")

    print("\nDone!")
