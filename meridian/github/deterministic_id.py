"""
Deterministic identifiers.

GitHub has no UUIDs, so every entity read from it gets an ID derived from
its coordinates: ``sha1(namespace + key)`` sliced into UUID-v5 shaped
fields. The same ``(namespace, key)`` always yields the same ID, which lets
a stateless adapter behave as if it kept a persistent ID table.

The namespace strings are persisted identity roots. Changing one silently
changes every ID derived from it.
"""

import hashlib

ISSUE_ID_NAMESPACE = "6ba7b810-9dad-11d1-80b4-00c04fd430c8"
COMMENT_ID_NAMESPACE = "6ba7b811-9dad-11d1-80b4-00c04fd430c8"
USER_ID_NAMESPACE = "6ba7b812-9dad-11d1-80b4-00c04fd430c8"
MILESTONE_ID_NAMESPACE = "6ba7b813-9dad-11d1-80b4-00c04fd430c8"
ISSUE_LINK_ID_NAMESPACE = "6ba7b814-9dad-11d1-80b4-00c04fd430c8"

NAMESPACES = {
    "issue": ISSUE_ID_NAMESPACE,
    "comment": COMMENT_ID_NAMESPACE,
    "user": USER_ID_NAMESPACE,
    "milestone": MILESTONE_ID_NAMESPACE,
    "issue-link": ISSUE_LINK_ID_NAMESPACE,
}


def generate_deterministic_id(namespace: str, key: str) -> str:
    """Derive a stable ``xxxxxxxx-xxxx-5xxx-yxxx-xxxxxxxxxxxx`` identifier.

    The digest covers the namespace string followed by the key string (plain
    concatenation, not RFC 4122 namespace bytes). The version nibble is
    forced to ``5`` and the top two bits of ``clock_seq`` to ``10``.
    """
    digest = hashlib.sha1()
    digest.update(namespace.encode("utf-8"))
    digest.update(key.encode("utf-8"))
    hexdigest = digest.hexdigest()

    time_low = hexdigest[0:8]
    time_mid = hexdigest[8:12]
    time_hi_version = "5" + hexdigest[13:16]
    clock_seq_hi = "%02x" % ((int(hexdigest[16:18], 16) & 0x3F) | 0x80)
    clock_seq_low = hexdigest[18:20]
    node = hexdigest[20:32]

    return f"{time_low}-{time_mid}-{time_hi_version}-{clock_seq_hi}{clock_seq_low}-{node}"


def issue_id(owner: str, repo: str, number: int) -> str:
    return generate_deterministic_id(ISSUE_ID_NAMESPACE, f"{owner}/{repo}#{number}")


def milestone_id(owner: str, repo: str, number: int) -> str:
    return generate_deterministic_id(MILESTONE_ID_NAMESPACE, f"{owner}/{repo}#{number}")


def comment_id(owner: str, repo: str, github_comment_id: int) -> str:
    return generate_deterministic_id(
        COMMENT_ID_NAMESPACE, f"{owner}/{repo}#{github_comment_id}"
    )
