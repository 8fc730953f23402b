import pytest

from cipv.perception.cipv_selector import CipvSelector, CipvDecision

from conftest import make_object


def flags(objects):
    return [obj.is_cipv for obj in objects]


def run(selector, objects, in_lane):
    decision = selector.select(objects, in_lane)
    CipvSelector.apply(objects, decision)
    return decision


def test_nearest_in_lane_object_wins():
    objects = [make_object(1, 25.0, 0.0), make_object(2, 10.0, 0.0), make_object(3, 5.0, 8.0)]
    decision = run(CipvSelector(), objects, [True, True, False])

    assert decision.winner_index == 1
    assert decision.winner_track_id == 2
    assert flags(objects) == [False, True, False]


def test_ties_keep_first_encountered():
    objects = [make_object(7, 15.0, 0.5), make_object(8, 15.0, -0.5)]
    decision = CipvSelector().select(objects, [True, True])
    assert decision.winner_track_id == 7


def test_no_in_lane_object_leaves_flags_untouched():
    selector = CipvSelector()
    objects = [make_object(1, 20.0, 0.0)]
    run(selector, objects, [True])

    decision = run(selector, objects, [False])

    assert not decision.has_winner
    assert flags(objects) == [True]
    assert selector.previous_index is None


def test_same_winner_is_idempotent():
    selector = CipvSelector()
    objects = [make_object(1, 20.0, 0.0), make_object(2, 40.0, 0.0)]
    first = run(selector, objects, [True, True])
    second = run(selector, objects, [True, True])

    assert first.changed
    assert not second.changed
    assert flags(objects) == [True, False]


def test_new_winner_clears_previous():
    selector = CipvSelector()
    objects = [make_object(1, 20.0, 0.0), make_object(2, 40.0, 0.0)]
    run(selector, objects, [True, True])
    decision = run(selector, objects, [False, True])

    assert decision.previous_index == 0
    assert flags(objects) == [False, True]


def test_flag_retained_through_gap_is_cleared_by_next_winner():
    selector = CipvSelector()
    objects = [make_object(1, 20.0, 0.0), make_object(2, 40.0, 0.0)]
    run(selector, objects, [True, False])
    run(selector, objects, [False, False])
    run(selector, objects, [False, True])

    assert flags(objects) == [False, True]


def test_reset_forgets_previous_winner():
    selector = CipvSelector()
    objects = [make_object(1, 20.0, 0.0)]
    run(selector, objects, [True])
    selector.reset()

    assert selector.previous_index is None
    assert selector.previous_track_id is None
    assert selector.select(objects, [True]).changed


def test_mismatched_results_raise():
    with pytest.raises(ValueError):
        CipvSelector().select([make_object(1, 20.0, 0.0)], [])


def test_empty_decision_has_no_winner():
    decision = CipvDecision()
    assert not decision.has_winner
    assert not decision.changed


def test_reordered_list_with_new_winner_at_same_index():
    selector = CipvSelector()
    lead = make_object(1, 20.0, 0.0)
    cut_in = make_object(2, 30.0, 5.5)
    run(selector, [lead, cut_in], [True, False])

    cut_in.center[0] = 12.0
    objects = [cut_in, lead]
    decision = run(selector, objects, [True, True])

    assert decision.winner_index == decision.previous_index == 0
    assert decision.changed
    assert decision.previous_track_id == 1
    assert flags(objects) == [True, False]


def test_apply_clears_stray_flag_even_without_change():
    objects = [make_object(1, 20.0, 0.0), make_object(2, 40.0, 0.0)]
    objects[1].is_cipv = True
    decision = CipvDecision(winner_index=0, winner_track_id=1, previous_index=0, previous_track_id=1)

    CipvSelector.apply(objects, decision)

    assert not decision.changed
    assert flags(objects) == [True, False]
