"""FTP handler against a real server.

Reads the connection from the environment:

    FTP_URL=ftp://ftp.example.com/incoming FTP_USER=alice FTP_PASSWORD=secret python examples/ftp_handler.py

Without FTP_USER/FTP_PASSWORD the handler logs in anonymously.
"""

from __future__ import annotations

import io
import logging
import os
import sys

from filehandler import FileHandlerError, FTPHandler, Unauthorized

if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG, format="%(name)s %(message)s")

    url = os.environ.get("FTP_URL")
    if not url:
        sys.exit("Set FTP_URL, e.g. ftp://ftp.example.com/incoming")

    handler = FTPHandler(url, user=os.environ.get("FTP_USER"), password=os.environ.get("FTP_PASSWORD"))

    if not handler.can_connect():
        sys.exit(f"Cannot reach {url}")

    try:
        # Each call below opens and closes its own control connection
        handler.create_directory("filehandler-demo")
        handler.upload(b"uploaded by filehandler\n", "demo.txt", "filehandler-demo")
        print("Listing:", handler.list_directory("filehandler-demo").names)

        info = handler.lookup("demo.txt", "filehandler-demo")
        print(f"demo.txt: {info.size} bytes, modified {info.created_at}")

        buf = io.BytesIO()
        handler.download(buf, "filehandler-demo/demo.txt")
        print("Content:", buf.getvalue().decode().strip())

        handler.delete("filehandler-demo/demo.txt")
    except Unauthorized:
        sys.exit("Server rejected the credentials")
    except FileHandlerError as exc:
        sys.exit(f"{exc.kind.value}: {exc}")
