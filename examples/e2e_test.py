"""
End-to-end test: disburse to three recipients against the mock ledger.
"""

import sys
import tempfile
import threading
import time
from pathlib import Path

import uvicorn
from click.testing import CliRunner

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))
from mock_ledger_server import app
from dispenser.cli import main as dispenser_main

PRIVATE_KEY = "APrivateKey1zkp8CZNn3yeCseEtxuVPbDCwSyhGW6yZKUYKfgXmcpoGPWH"
RECIPIENTS = ["aleo1" + ch * 58 for ch in "qpz"]
BASE_URL = "http://127.0.0.1:4041"


def run_server():
    uvicorn.run(app, host="127.0.0.1", port=4041, log_level="error")


def main():
    print("🚀 Dispenser E2E Test — private transfers against a mock ledger")
    print("=" * 60)
    print()

    print("1️⃣  Starting mock ledger service...")
    server_thread = threading.Thread(target=run_server, daemon=True)
    server_thread.start()
    time.sleep(2)
    print(f"   ✅ Service running on {BASE_URL}")
    print()

    print("2️⃣  Writing recipient file...")
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "recipients.txt"
        path.write_text("\n".join(RECIPIENTS) + "\n")
        print(f"   ✅ {len(RECIPIENTS)} recipients")
        print()

        print("3️⃣  Running dispenser...")
        result = CliRunner().invoke(
            dispenser_main,
            [
                "1000000", "25000", PRIVATE_KEY, str(path), "3", "100",
                "--node-url", BASE_URL,
                "--service-url", BASE_URL,
            ],
        )
    print(result.output)

    if result.exit_code == 0:
        print("   🎉 DISBURSEMENT COMPLETE")
    else:
        print(f"   ❌ Dispenser exited with {result.exit_code}")

    print()
    print("=" * 60)


if __name__ == "__main__":
    main()
