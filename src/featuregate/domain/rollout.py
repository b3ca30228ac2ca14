"""Deterministic percentage bucketing for gradual rollouts.

A caller identity is hashed together with the feature identifier into one of
100 buckets; the caller is admitted when its bucket is below the rollout
percentage. The same identity always lands in the same bucket for a given
feature, so raising the percentage only ever admits more callers.
"""

BUCKETS = 100

_UINT32 = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def consistent_hash(value: str) -> int:
    """Rolling ``h = h * 31 + code`` hash over UTF-16 code units.

    The accumulator is kept to a signed 32-bit integer and the absolute value
    is returned, so the result is non-negative and identical on every platform
    and across process restarts (unlike the builtin ``hash``).
    """
    h = 0
    data = value.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + code_unit) & _UINT32
    if h & _INT32_SIGN:
        h -= _UINT32 + 1
    return abs(h)


def bucket_for(identity: str, feature_id: str) -> int:
    return consistent_hash(identity + feature_id) % BUCKETS


def in_bucket(identity: str, feature_id: str, percentage: int) -> bool:
    if percentage >= BUCKETS:
        return True
    if percentage <= 0:
        return False
    return bucket_for(identity, feature_id) < percentage
