#!/usr/bin/env python3
"""Configuration validation script."""

import argparse
import sys
from pathlib import Path
from typing import Optional

from refdata_app.config.loader import ConfigLoader
from refdata_app.config.publishing import publisher_config_from_dict
from refdata_app.config.validation import ConfigIssue, ConfigValidator


def validate_job_config(loader: ConfigLoader, job_name: Optional[str]) -> list[ConfigIssue]:
    """Validate the merged configuration for one job (or the global config)."""
    config = loader.merge_config(job_name)
    return ConfigValidator.validate_config(config)


def main(argv: Optional[list[str]] = None) -> int:
    """Main validation function."""
    parser = argparse.ArgumentParser(description="Validate scheduler.yaml")
    parser.add_argument("config_dir", nargs="?", default=None,
                        help="Directory containing scheduler.yaml")
    args = parser.parse_args(argv)

    loader = ConfigLoader.create(Path(args.config_dir) if args.config_dir else None)
    print(f"Validating configuration in {loader.config_dir}...")

    all_valid = True

    for job_name in [None, *loader.job_names()]:
        label = job_name or "global"
        try:
            errors = validate_job_config(loader, job_name)
            if errors:
                print(f"[FAIL] {label}: {len(errors)} validation errors")
                for error in errors:
                    print(f"  - {error.field}: {error.message} (value: {error.value})")
                all_valid = False
            else:
                loader.load(job_name)
                print(f"[OK]   {label}")
        except Exception as e:
            print(f"[FAIL] {label}: {e}")
            all_valid = False

    publisher_section = loader.load_file().get("publisher")
    if publisher_section is not None:
        try:
            publisher_config_from_dict(publisher_section)
            print("[OK]   publisher")
        except (TypeError, ValueError) as e:
            print(f"[FAIL] publisher: {e}")
            all_valid = False

    if all_valid:
        print("All configuration validation passed")
        return 0
    print("Configuration validation failed")
    return 1


if __name__ == "__main__":
    sys.exit(main())
