"""Encode a JSONL corpus of texts or question/paragraph pairs to numpy arrays.

Each input line is a JSON object with either ``"text"`` (single sequence)
or ``"question"`` + ``"paragraph"`` (pair).  Every record is encoded with
the tokenizer named in the config, truncated and zero-padded to
``max_len``.

Usage:
  python scripts/encode.py \
    --config configs/bert_qa.yaml \
    --input data/squad_dev.jsonl \
    --output data/encoded/squad_dev

Output files:
  input_ids.npy      - (N, max_len) int32 token ids
  attention_mask.npy - (N, max_len) int32, 1 for real tokens
  segment_ids.npy    - (N, max_len) int32 segment ids
  metadata.json      - config snapshot, truncation stats, creation info
  encode_debug.log   - per-run debug log (skipped records, cache contention)
"""

import argparse
import json
import logging
import sys
import time
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path

import numpy as np
from tqdm import tqdm

sys.path.insert(0, str(Path(__file__).parent.parent))

from tokforge.tokenizer.config import TokenizerConfig
from tokforge.tokenizer.errors import TokenizerError
from tokforge.tokenizer.tokenizer import load_tokenizer


def read_records(path: Path) -> Iterator[tuple[str, str | None]]:
    """Yield ``(text_1, text_2)`` per JSONL line; blank lines are skipped."""
    with open(path, encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            record = json.loads(line)
            if "question" in record:
                yield record["question"], record.get("paragraph", "")
            elif "text" in record:
                yield record["text"], None
            else:
                raise ValueError(
                    f"{path}:{line_no}: expected 'text' or 'question' field"
                )


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Encode JSONL texts or pairs to fixed-length arrays"
    )
    parser.add_argument(
        "--config", "-c", type=str, required=True,
        help="YAML config with a 'tokenizer' section",
    )
    parser.add_argument(
        "--input", "-i", type=str, required=True,
        help="JSONL file of {'text'} or {'question', 'paragraph'} records",
    )
    parser.add_argument(
        "--output", "-o", type=str, required=True,
        help="Output directory for .npy arrays",
    )
    parser.add_argument(
        "--max-len", type=int, default=None,
        help="Override max_len from the config",
    )
    args = parser.parse_args()

    config = TokenizerConfig.from_yaml(args.config)
    if args.max_len is not None:
        config.max_len = args.max_len
        config.__post_init__()

    try:
        tokenizer = load_tokenizer(config)
    except TokenizerError as e:
        print(f"Error: Could not load tokenizer: {e}")
        sys.exit(1)

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Input not found at {input_path}")
        sys.exit(1)

    records = list(read_records(input_path))

    print("\nEncoding config:")
    print(f"  Tokenizer: {config.kind} ({config.vocab_path}, vocab={tokenizer.vocab_size})")
    print(f"  Max length: {config.max_len}")
    print(f"  Truncation: {config.truncation_strategy} (stride={config.stride})")
    print(f"  Records: {len(records):,}")
    print(f"  Output: {args.output}")

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)

    # Debug log: appends to <output>/encode_debug.log
    log = logging.getLogger("tokforge")
    log.setLevel(logging.DEBUG)
    if not log.handlers:
        fh = logging.FileHandler(str(output_dir / "encode_debug.log"), encoding="utf-8")
        fh.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        log.addHandler(fh)
    log.info("=== Encoding %d records from %s ===", len(records), input_path)

    n = len(records)
    input_ids = np.zeros((n, config.max_len), dtype=np.int32)
    attention_mask = np.zeros((n, config.max_len), dtype=np.int32)
    segment_ids = np.zeros((n, config.max_len), dtype=np.int32)

    start_time = time.time()
    total_tokens = 0
    truncated_records = 0
    truncated_tokens = 0
    failures = 0

    def encode_one(record: tuple[str, str | None]):
        try:
            return tokenizer.encode(
                record[0], record[1], config.max_len, config.strategy, config.stride
            )
        except TokenizerError as e:
            return e

    # Executor.map yields results in input order.
    with ThreadPoolExecutor(max_workers=config.num_workers) as pool:
        results = pool.map(encode_one, records)
        for row, encoded in enumerate(
            tqdm(results, total=n, desc="Encoding", unit="rec")
        ):
            if isinstance(encoded, TokenizerError):
                failures += 1
                tqdm.write(f"  Skipping record {row}: {encoded}")
                log.warning("Skipping record %d: %s", row, encoded)
                continue
            arrays = encoded.to_numpy(pad_to=config.max_len)
            input_ids[row] = arrays["input_ids"]
            attention_mask[row] = arrays["attention_mask"]
            segment_ids[row] = arrays["segment_ids"]
            total_tokens += len(encoded)
            if encoded.num_truncated_tokens:
                truncated_records += 1
                truncated_tokens += encoded.num_truncated_tokens

    elapsed = time.time() - start_time
    np.save(output_dir / "input_ids.npy", input_ids)
    np.save(output_dir / "attention_mask.npy", attention_mask)
    np.save(output_dir / "segment_ids.npy", segment_ids)

    metadata = {
        "total_records": n,
        "total_tokens": total_tokens,
        "truncated_records": truncated_records,
        "truncated_tokens": truncated_tokens,
        "failed_records": failures,
        "vocab_size": tokenizer.vocab_size,
        "config_file": args.config,
        "input_file": str(input_path),
        "tokenizer_config": {
            "kind": config.kind,
            "vocab_path": config.vocab_path,
            "merges_path": config.merges_path,
            "lower_case": config.lower_case,
            "strip_accents": config.strip_accents,
            "max_len": config.max_len,
            "truncation_strategy": config.truncation_strategy,
            "stride": config.stride,
        },
        "elapsed_seconds": round(elapsed, 1),
        "created": datetime.now(timezone.utc).isoformat(),
    }
    (output_dir / "metadata.json").write_text(
        json.dumps(metadata, indent=2), encoding="utf-8"
    )

    log.info("Done: %d records, %d tokens, %d failed", n, total_tokens, failures)

    print("\nDone:")
    print(f"  {n:,} records | {total_tokens:,} tokens | {elapsed:.1f}s")
    print(f"  Truncated: {truncated_records:,} records ({truncated_tokens:,} tokens)")
    if failures:
        print(f"  Failed: {failures:,} records (left as padding)")


if __name__ == "__main__":
    main()
