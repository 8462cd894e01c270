"""Identity utilities for deterministic IDs.

- record_id: deterministic hash of an output record's identity
- sha256_text: content hash of a serialized record
"""

import hashlib


def sha256_text(text: str) -> str:
    """Compute SHA256 of a UTF-8 string.

    Returns:
        64-character hex string.
    """
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def compute_record_id(experiment_id: str, kind: str, name: str) -> str:
    """Compute deterministic record_id.

    record_id = sha256(experiment_id + kind + name)

    The same record of the same experiment gets the same id on every run,
    so a rerun replaces it rather than adding a sibling.

    Args:
        experiment_id: Experiment identifier
        kind: Record kind ("model" or "dashboard")
        name: Model identifier, or the experiment id for the dashboard

    Returns:
        64-character hex string (SHA256)
    """
    # Concatenate with delimiter to prevent ambiguity
    identity_str = f"{experiment_id}|{kind}|{name}"

    return hashlib.sha256(identity_str.encode("utf-8")).hexdigest()
