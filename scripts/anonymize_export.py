"""Anonymize a JSON export of contest samples for use as a test fixture.

Reads a JSON document with "samples" (rows of the samples table, optionally
with "empresa_nombre") and "bands" (rows of the medal-band table), replaces
sample and company names with fake ones generated by faker with a fixed
seed, and writes an anonymized copy. Scores, codes and bands are kept.

Usage:
    python scripts/anonymize_export.py export.json
    python scripts/anonymize_export.py export.json -o output.json
"""

import argparse
import json
from pathlib import Path

from faker import Faker

FIXTURES_DIR = Path(__file__).parent.parent / "tests" / "fixtures"
DEFAULT_OUTPUT = FIXTURES_DIR / "contest.json"

SEED = 20260201

NAME_FIELDS = ("nombre", "empresa_nombre")


def discover_names(samples: list[dict]) -> set[str]:
    """Collect every sample and company name in the export."""
    names: set[str] = set()
    for row in samples:
        for name_field in NAME_FIELDS:
            value = row.get(name_field)
            if value:
                names.add(value)
    return names


def generate_fake_names(names: set[str], seed: int) -> dict[str, str]:
    """Map each real name to a unique fake one.

    Names are processed in sorted order so the same export always gets the
    same replacements.
    """
    fake = Faker(["es_ES", "it_IT", "pt_PT"])
    Faker.seed(seed)

    mapping: dict[str, str] = {}
    used_fakes: set[str] = set()
    lower_names = {n.lower() for n in names}

    for name in sorted(names):
        fake_name = fake.company()
        while fake_name.lower() in lower_names or fake_name in used_fakes:
            fake_name = fake.company()
        used_fakes.add(fake_name)
        mapping[name] = fake_name

    return mapping


def apply_replacements(samples: list[dict], mapping: dict[str, str]) -> list[dict]:
    """Return copies of the rows with names replaced."""
    anonymized = []
    for row in samples:
        row = dict(row)
        for name_field in NAME_FIELDS:
            if row.get(name_field) in mapping:
                row[name_field] = mapping[row[name_field]]
        anonymized.append(row)
    return anonymized


def main():
    parser = argparse.ArgumentParser(
        description="Anonymize a JSON export of contest samples")
    parser.add_argument("input", help="Path to the input JSON file")
    parser.add_argument("-o", "--output", default=str(DEFAULT_OUTPUT),
                        help=f"Output path (default: {DEFAULT_OUTPUT})")
    args = parser.parse_args()

    data = json.loads(Path(args.input).read_text(encoding="utf-8"))
    samples = data.get("samples", [])

    names = discover_names(samples)
    print(f"Found {len(names)} unique name strings")

    mapping = generate_fake_names(names, SEED)

    for original, fake in sorted(mapping.items()):
        print(f"  {original} -> {fake}")

    data["samples"] = apply_replacements(samples, mapping)

    # Verify no original names remain
    serialized = json.dumps(data, ensure_ascii=False)
    remaining = [name for name in names if json.dumps(name, ensure_ascii=False) in serialized]
    if remaining:
        print(f"WARNING: {len(remaining)} names still found: {remaining}")
    else:
        print("All names successfully replaced.")

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(data, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    print(f"Written to {output_path}")


if __name__ == "__main__":
    main()
