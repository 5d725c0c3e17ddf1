"""Tests for image references and budget-gated side-surface patches."""

import pytest
from conftest import FakeClock

from nightfall.orchestrator.media import MediaResolver, match_place_photo, normalize_title
from nightfall.orchestrator.patches import SurfacePatcher, veil_caption
from nightfall.policy.channel_budget import ChannelBudget
from nightfall.policy.circle import CircleSignals
from nightfall.protocol.store import SurfaceStore
from nightfall.session.models import PocketTicket, WhisperItem
from nightfall.skills.models import CandidateItem, CuratorialBundle, Ending, MediaPack
from nightfall.toolbus.models import PlaceResult


def _places() -> list[PlaceResult]:
    return [
        PlaceResult(place_id="a", title="Canal Cafe", tag="late", photo_ref="ref_a"),
        PlaceResult(place_id="b", title="Night Bookstore", tag="quiet", photo_url="nf://photo/custom_b"),
        PlaceResult(place_id="c", title="No Photo Bar", tag="unknown"),
    ]


def _data(messages, surface_id: str) -> dict:
    store = SurfaceStore()
    store.apply_all(messages)
    return store.get(surface_id).data_model


class TestMedia:
    def test_normalize_title(self):
        assert normalize_title("Late Café, No.5!") == "latecafno5"
        assert normalize_title("书店 2F") == "书店2f"

    def test_match_prefers_longest_overlap(self):
        match = match_place_photo("night bookstore upper floor", _places())
        assert match.place_id == "b"
        assert match_place_photo("", _places()) is None

    def test_candidate_refs_without_photos(self):
        candidates = [CandidateItem(id="p1", title="x"), CandidateItem(title="y", image_ref="nf://keep")]

        out = MediaResolver().attach_candidate_images("coffee", candidates, _places())

        assert out[0].image_ref == "nf://fragment/coffee/p1"
        assert out[1].image_ref == "nf://keep"
        assert candidates[0].image_ref is None

    def test_candidate_refs_with_photos(self):
        candidates = [CandidateItem(id="p1", title="Canal Cafe"), CandidateItem(id="p2", title="zzz")]

        out = MediaResolver(photos_enabled=True).attach_candidate_images("coffee", candidates, _places())

        assert out[0].image_ref == "nf://photo/ref_a"
        assert out[1].image_ref == "nf://photo/custom_b"

    def test_media_pack_from_candidates(self):
        bundle = CuratorialBundle(primary_ending=Ending(title="Canal"))
        candidates = [CandidateItem(image_ref=f"nf://fragment/s/{i}") for i in range(8)]

        pack = MediaResolver().ensure_media_pack(bundle, "s", [], candidates).media_pack

        assert pack.cover_ref == "nf://cover/s"
        assert pack.fragment_ref == "nf://fragment/s"
        assert pack.stamp_ref == "nf://stamp/s"
        assert pack.texture_ref == "nf://texture/s"
        assert len(pack.gallery_refs) == 6

    def test_media_pack_keeps_existing_refs(self):
        bundle = CuratorialBundle(media_pack=MediaPack(cover_ref="nf://cover/mine"))

        pack = MediaResolver(photos_enabled=True).ensure_media_pack(bundle, "s", _places(), []).media_pack

        assert pack.cover_ref == "nf://cover/mine"
        assert pack.fragment_ref == "nf://photo/custom_b"
        assert pack.gallery_refs == ["nf://photo/ref_a", "nf://photo/custom_b"]


class TestVeilCaption:
    def test_plain(self, make_context):
        assert veil_caption(make_context(hour=23)) == "Late night · Immersion · Moon veil"

    def test_anchor_and_token(self, make_context):
        caption = veil_caption(make_context(hour=20, energy_band="low"), "Riverside loop", "rain")
        assert caption == "After dinner · Immersion · Low battery: Riverside loop #rain"

    def test_prime_time_label(self, make_context):
        assert veil_caption(make_context(hour=22, mode="explore"), token="jazz") == "Prime time · Explore #jazz"


class TestSurfacePatcher:
    @pytest.fixture
    def clock(self) -> FakeClock:
        return FakeClock(start=1_700_000_100.0)

    @pytest.fixture
    def circle(self, clock) -> CircleSignals:
        return CircleSignals(clock=clock)

    @pytest.fixture
    def patcher(self, audit, clock, circle) -> SurfacePatcher:
        return SurfacePatcher(ChannelBudget(None, audit, clock), circle)

    @pytest.mark.parametrize(("pulses", "pressure"), [(0, "Quiet"), (3, "Soft"), (9, "Warm")])
    def test_sky_pressure(self, patcher, circle, clock, session, context, pulses, pressure):
        for _ in range(pulses):
            circle.pulse(session, context.location.grid_id, context.user_state.mode)
        clock.advance(130)

        sky = _data(patcher.sky(session, context), "sky")["sky"]

        assert sky["pressure"] == pressure
        assert sky["backdrop_ref"] == "nf://texture/moon"

    def test_sky_in_stealth(self, patcher, session, make_context):
        sky = _data(patcher.sky(session, make_context(stealth=True)), "sky")["sky"]
        assert sky["pressure"] == "Stealth"

    def test_repeat_push_is_dropped(self, patcher, session, context, clock):
        assert patcher.sky(session, context)
        assert patcher.sky(session, context) == []
        clock.advance(8)
        assert patcher.sky(session, context)

    def test_pocket_and_whispers_are_capped(self, patcher, session):
        session.pocket_tickets = [PocketTicket(title=f"t{i}") for i in range(20)]
        session.whispers_items = [WhisperItem(content=f"w{i}") for i in range(20)]

        tickets = _data(patcher.pocket(session), "pocket")["pocket"]["tickets"]
        items = _data(patcher.whispers(session), "whispers")["whispers"]["items"]

        assert [t["title"] for t in tickets][:2] == ["t0", "t1"]
        assert len(tickets) == 14
        assert items[0]["content"] == "w8"
        assert len(items) == 12

    def test_radio_cover_from_candidates(self, patcher, session):
        session.last_candidates = [CandidateItem(id="p1", image_ref="nf://fragment/s/p1")]

        radio = _data(patcher.radio(session), "radio")["radio"]

        assert radio == {"playing": False, "narrative": "…", "cover_ref": "nf://fragment/s/p1"}

    def test_veil_uses_bundle(self, patcher, session, context):
        session.last_bundle = CuratorialBundle(
            primary_ending=Ending(title="Canal"),
            ambient_tokens=["mist"],
            media_pack=MediaPack(cover_ref="nf://cover/canal"),
        )

        collage = _data(patcher.veil(session, context), "veil")["veil"]["collage"]

        assert collage["cover_ref"] == "nf://cover/canal"
        assert collage["caption"].endswith(": Canal #mist")

    def test_discover_gallery_needs_refs(self, patcher, session):
        assert patcher.discover_gallery(session) == []

        session.last_bundle = CuratorialBundle(media_pack=MediaPack(gallery_refs=["nf://a"]))
        discover = _data(patcher.discover_gallery(session), "discover")["discover"]

        assert discover["stage"] == "library"
        assert discover["gallery_refs"] == ["nf://a"]
