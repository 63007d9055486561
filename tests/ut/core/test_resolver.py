"""引用解析器单元测试"""

from __future__ import annotations

import logging

import pytest

from conftest import FakeMetadataClient
from zdeps.core.exceptions import NoMatchingTagError, NoMatchingVersionError
from zdeps.core.models import DependencySpec
from zdeps.core.resolver import ReferenceResolver, bare_version

SHA = "abc123abc123abc123abc123abc123abc123abc1"


@pytest.fixture()
def meta() -> FakeMetadataClient:
    return FakeMetadataClient(
        releases={"o/lib": "v2.0.0"},
        tags={"o/lib": ["1.0.0", "1.5.0", "v2.0.0", "nightly"]},
        tips={"o/lib": SHA, "o/bare": SHA},
    )


def resolve(meta: FakeMetadataClient, repo: str = "lib", mode: str = "best_match", **kw):
    return ReferenceResolver(meta, constraint_mode=mode).resolve("o", repo, DependencySpec(git=f"o/{repo}", **kw))


class TestPrecedence:
    def test_rev_is_fixed(self, meta: FakeMetadataClient) -> None:
        r = resolve(meta, rev="deadbeef")
        assert (r.ref, r.version, r.commit_sha, r.fixed) == ("deadbeef", "deadbeef", "deadbeef", True)
        assert meta.calls == []

    def test_tag(self, meta: FakeMetadataClient) -> None:
        r = resolve(meta, tag="v1.0.0")
        assert (r.ref, r.version, r.fixed) == ("v1.0.0", "v1.0.0", False)

    def test_branch(self, meta: FakeMetadataClient) -> None:
        r = resolve(meta, branch="dev")
        assert r.ref == r.version == "dev"

    def test_rev_beats_tag_and_branch(self, meta: FakeMetadataClient) -> None:
        assert resolve(meta, rev="r1", tag="t1", branch="b1").ref == "r1"
        assert resolve(meta, tag="t1", branch="b1").ref == "t1"

    def test_tag_overrides_constraint_with_warning(
        self, meta: FakeMetadataClient, caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="zdeps.core.resolver"):
            r = resolve(meta, tag="v1.0.0", version="^2.0.0")
        assert r.ref == "v1.0.0"
        assert len(r.warnings) == 1
        assert "^2.0.0" in r.warnings[0]
        assert "^2.0.0" in caplog.text
        assert ("get_tags", "o/lib") not in meta.calls

    def test_no_warning_without_constraint(self, meta: FakeMetadataClient) -> None:
        assert resolve(meta, tag="v1.0.0").warnings == []

    def test_latest_commit(self, meta: FakeMetadataClient) -> None:
        r = resolve(meta, use_latest_commit=True)
        assert (r.ref, r.version, r.commit_sha, r.fixed) == (SHA, SHA, SHA, True)

    def test_latest_sentinel(self, meta: FakeMetadataClient) -> None:
        r = resolve(meta, version="latest")
        assert r.ref == r.version == "v2.0.0"


class TestConstraintBestMatch:
    def test_highest_matching_tag(self, meta: FakeMetadataClient) -> None:
        r = resolve(meta, version="^1.0.0")
        assert r.ref == "1.5.0"
        assert r.version == "1.5.0"

    def test_keeps_tag_spelling(self, meta: FakeMetadataClient) -> None:
        r = resolve(meta, version=">=2.0.0")
        assert r.ref == "v2.0.0"
        assert r.version == "2.0.0"

    def test_no_match(self, meta: FakeMetadataClient) -> None:
        with pytest.raises(NoMatchingVersionError) as exc:
            resolve(meta, version="^3.0.0")
        assert "2.0.0" in exc.value.candidates

    def test_no_semver_tags(self) -> None:
        meta = FakeMetadataClient(tags={"o/lib": ["nightly"]})
        with pytest.raises(NoMatchingVersionError):
            resolve(meta, version="^1.0.0")


class TestConstraintLiteral:
    def test_bare_version(self) -> None:
        assert bare_version("^1.2.3") == "1.2.3"
        assert bare_version("~1.2.3") == "1.2.3"
        assert bare_version("=1.2.3") == "1.2.3"

    def test_plain_tag_first(self, meta: FakeMetadataClient) -> None:
        r = resolve(meta, mode="literal", version="^1.0.0")
        assert r.ref == "1.0.0"
        assert r.version == "^1.0.0"

    def test_v_prefixed_fallback(self, meta: FakeMetadataClient) -> None:
        r = resolve(meta, mode="literal", version="~2.0.0")
        assert r.ref == "v2.0.0"
        assert [c for c in meta.calls if c[0] == "tag_exists"] == [
            ("tag_exists", "o/lib@2.0.0"),
            ("tag_exists", "o/lib@v2.0.0"),
        ]

    def test_no_tag(self, meta: FakeMetadataClient) -> None:
        with pytest.raises(NoMatchingTagError) as exc:
            resolve(meta, mode="literal", version="^9.9.9")
        assert exc.value.tried == ["9.9.9", "v9.9.9"]


class TestDefault:
    def test_latest_release(self, meta: FakeMetadataClient) -> None:
        r = resolve(meta)
        assert r.ref == "v2.0.0"
        assert not r.fixed

    def test_no_release_falls_back_to_tip(self, meta: FakeMetadataClient) -> None:
        r = resolve(meta, repo="bare")
        assert r.ref == r.version == r.commit_sha == SHA
        assert r.fixed
