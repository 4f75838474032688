"""데이터 지문 테스트."""
from services.fingerprint import canonical_json, indicator_fingerprint, payload_hash


BASE = {"code": "US_10Y", "latest_value": 10, "delta_1m": 0.5, "zscore_3y": 1.2, "pctile_10y": 0.9}


class TestIndicatorFingerprint:
    """지표 스냅샷 지문."""

    def test_stable_for_same_snapshot(self):
        """같은 값이면 같은 지문 (dict 순서 무관)."""
        reordered = {"zscore_3y": 1.2, "delta_1m": 0.5, "latest_value": 10, "code": "US_10Y"}
        assert indicator_fingerprint(BASE) == indicator_fingerprint(reordered)

    def test_length(self):
        assert len(indicator_fingerprint(BASE)) == 32

    def test_each_watched_field_changes_fingerprint(self):
        """감시 필드 하나만 바뀌어도 지문이 바뀐다."""
        original = indicator_fingerprint(BASE)
        for field, value in (("latest_value", 11), ("delta_1m", 1.5), ("zscore_3y", -0.3)):
            changed = {**BASE, field: value}
            assert indicator_fingerprint(changed) != original, field

    def test_unwatched_field_ignored(self):
        """감시 대상이 아닌 필드는 지문에 영향 없음."""
        changed = {**BASE, "pctile_10y": 0.1, "name": "renamed"}
        assert indicator_fingerprint(changed) == indicator_fingerprint(BASE)

    def test_missing_field_differs_from_zero(self):
        without = {k: v for k, v in BASE.items() if k != "delta_1m"}
        zero = {**BASE, "delta_1m": 0}
        assert indicator_fingerprint(without) != indicator_fingerprint(zero)


class TestPayloadHash:
    """어드바이스 페이로드 해시."""

    def test_key_order_independent(self):
        a = {"asof": "2026-03-01", "portfolio": {"total": 100, "holdings": [1, 2]}}
        b = {"portfolio": {"holdings": [1, 2], "total": 100}, "asof": "2026-03-01"}
        assert payload_hash(a) == payload_hash(b)

    def test_list_order_matters(self):
        a = {"holdings": [1, 2]}
        b = {"holdings": [2, 1]}
        assert payload_hash(a) != payload_hash(b)

    def test_full_sha256(self):
        assert len(payload_hash({"a": 1})) == 64

    def test_canonical_json_compact(self):
        assert canonical_json({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'
