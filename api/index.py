import os

from mangum import Mangum

# the Lambda task directory is read-only; /tmp is the only writable location
os.environ.setdefault("POCKETBANK_SNAPSHOT_PATH", "/tmp/pocketbank_snapshot.json")

from pocketbank.api import app  # noqa: E402

handler = Mangum(app, api_gateway_base_path="/api")
