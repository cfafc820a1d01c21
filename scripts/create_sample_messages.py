#!/usr/bin/env python3
"""Create a sample inbound message stream for development and demos.

Generates a JSON Lines file that `addrintel report` and `addrintel analyze`
can replay:
- 200 wallet addresses (Ethereum-style, deterministic)
- 2000 messages across the sms, email, app and blockchain channels
- roughly a third sent to phone/email contacts with the wallet in the body

Output is written to data/sample/messages.jsonl.
"""

import random
from datetime import datetime, timedelta, timezone
from pathlib import Path

import polars as pl

STATUSES = ["sent", "delivered", "read", "responded"]
STATUS_WEIGHTS = [40, 30, 20, 10]
CHANNELS = ["sms", "email", "app", "blockchain"]
CONTENTS = [
    "New drop is live",
    "Thanks, I love it!",
    "This is terrible, stop messaging me",
    "Claim your reward before Friday",
    "Great community call today",
]


def main() -> None:
    """Generate the sample message stream."""
    print("━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━")
    print("  Sample Message Stream Creation")
    print("━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━")
    print()

    rng = random.Random(42)
    output_dir = Path("data/sample")
    output_dir.mkdir(parents=True, exist_ok=True)

    # Step 1: Wallets
    print("Step 1: Generating wallets...")
    wallets = [f"0x{rng.getrandbits(160):040x}" for _ in range(200)]
    print(f"  Wallets: {len(wallets):,}")

    # Step 2: Messages
    print()
    print("Step 2: Generating messages...")
    start = datetime(2025, 1, 1, tzinfo=timezone.utc)
    rows = []
    for i in range(2000):
        wallet = rng.choice(wallets)
        content = rng.choice(CONTENTS)
        recipient = wallet
        if rng.random() < 0.33:
            recipient = f"+1555{rng.randrange(10**7):07d}"
            content = f"{content} (wallet {wallet})"
        status = rng.choices(STATUSES, weights=STATUS_WEIGHTS)[0]
        rows.append(
            {
                "id": f"msg_{i:05d}",
                "recipient": recipient,
                "content": content,
                "channel": rng.choice(CHANNELS),
                "status": status,
                "timestamp": (start + timedelta(minutes=rng.randrange(60 * 24 * 90))).isoformat(),
                "response_time": rng.randrange(30, 7200) if status == "responded" else None,
            }
        )

    messages = pl.DataFrame(rows).sort("timestamp")
    print(f"  Messages: {len(messages):,}")
    print(f"  Status mix: {dict(messages['status'].value_counts().iter_rows())}")

    # Step 3: Save
    print()
    print("Step 3: Saving messages as JSON Lines...")
    output = output_dir / "messages.jsonl"
    messages.write_ndjson(output)
    print(f"  ✓ Saved {output} ({len(messages):,} rows)")

    print()
    print("━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━")
    print("  ✅ Sample Message Creation Complete!")
    print("━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━")
    print()
    print("Next steps:")
    print(f"  addrintel report {output}")
    print(f"  addrintel analyze {output} --template high_risk_wallets")


if __name__ == "__main__":
    main()
