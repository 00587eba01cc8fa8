import argparse
import os

import pandas as pd

from ringscan.utils.synthetic import generate_haystack, inject_needle


def main():
    parser = argparse.ArgumentParser(description="Write a haystack of random transfers with needle rings injected")
    parser.add_argument("--accounts", type=int, default=1000)
    parser.add_argument("--transactions", type=int, default=5000)
    parser.add_argument("--needles", type=int, nargs="*", default=[3, 5, 8], help="ring sizes to inject")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--out", default="data")
    args = parser.parse_args()

    accounts, transactions = generate_haystack(args.accounts, args.transactions, seed=args.seed)
    for n, ring_size in enumerate(args.needles):
        accounts, transactions, needle_ids = inject_needle(
            accounts, transactions, ring_size, prefix=f"NEEDLE{n}"
        )
        print(f"Injected ring of {ring_size}: {', '.join(needle_ids)}")

    os.makedirs(args.out, exist_ok=True)
    accounts_path = os.path.join(args.out, "accounts.csv")
    transactions_path = os.path.join(args.out, "transactions.csv")
    pd.DataFrame(accounts).to_csv(accounts_path, index=False)
    pd.DataFrame(transactions).to_csv(transactions_path, index=False)
    print(f"Created {accounts_path} with {len(accounts)} accounts.")
    print(f"Created {transactions_path} with {len(transactions)} transactions.")


if __name__ == "__main__":
    main()
