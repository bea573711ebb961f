import threading
import time

from budget_planner.models import BudgetPlan, CustomCut
from budget_planner.plan_session import BudgetPlanSession
from budget_planner.storage import BudgetPlanStore


def _session(saved, plan=None, **kwargs):
    plan = plan or BudgetPlan(user_id='alice', year=2024)
    return BudgetPlanSession(plan, saved.append, wait_seconds=60, **kwargs)


def test_edits_notify_listeners_and_queue_one_save():
    saved, seen = [], []
    session = _session(saved, on_change=seen.append)

    session.set_cut('food', 15)
    session.set_cut('food', 25)
    session.toggle_lock('rent')

    assert len(seen) == 3
    assert seen[-1].cuts_by_value() == {'food': 25.0}
    assert session.has_pending_save
    assert saved == []

    assert session.flush()
    assert len(saved) == 1
    assert saved[0].cuts_by_value() == {'food': 25.0}
    assert saved[0].locked_categories == ['rent']


def test_cut_is_clamped_and_unchanged_values_are_ignored():
    saved, seen = [], []
    session = _session(saved, on_change=seen.append)

    assert session.set_cut('food', 140) == 100.0
    assert session.set_cut('food', '100') == 100.0
    assert session.set_cut('rent', -3) == 0.0

    assert session.custom_cuts == {'food': 100.0, 'rent': 0.0}
    assert len(seen) == 2


def test_toggle_lock_and_set_locked():
    session = _session([])

    assert session.toggle_lock('rent') is True
    assert session.toggle_lock('rent') is False
    session.set_locked('food', True)
    session.set_locked('food', True)

    assert session.locked_categories == ['food']


def test_reset_cuts_clears_overrides():
    plan = BudgetPlan(user_id='alice', year=2024, custom_cuts=[CustomCut('food', 30)])
    session = _session([], plan)

    session.reset_cuts()

    assert session.custom_cuts == {}
    assert session.snapshot().custom_cuts == []


def test_category_budgets_and_monthly_goal():
    saved = []
    session = _session(saved)

    session.set_category_budget('food', 400)
    session.set_category_budget('fun', -5)
    session.set_category_budget('fun', None)
    session.set_base_monthly_savings_goal(250)
    session.flush()

    assert session.category_budgets == {'food': 400.0}
    assert saved[0].category_budgets == {'food': 400.0}
    assert saved[0].base_monthly_savings_goal == 250.0


def test_unsubscribe_stops_notifications():
    seen = []
    session = _session([])
    unsubscribe = session.subscribe(seen.append)

    session.set_cut('food', 10)
    unsubscribe()
    session.set_cut('food', 20)

    assert len(seen) == 1


def test_close_drops_unsent_write():
    saved = []
    session = _session(saved)
    session.set_cut('food', 10)

    session.close()
    session.set_cut('food', 20)

    assert not session.has_pending_save
    assert session.flush() is False
    assert saved == []


def test_snapshot_is_detached():
    session = _session([])
    session.set_category_budget('food', 100)

    snapshot = session.snapshot()
    snapshot.category_budgets['food'] = 1

    assert session.category_budgets == {'food': 100.0}


def test_open_from_store_and_save_back(tmp_path):
    store = BudgetPlanStore(tmp_path)
    store.upsert('alice', 2024, [CustomCut('food', 12)], ['rent'], category_budgets={'food': 300})

    session = BudgetPlanSession.open(store, 'alice', 2024, wait_seconds=60)
    assert session.custom_cuts == {'food': 12.0}
    assert session.locked_categories == ['rent']

    session.toggle_lock('rent')
    session.flush()

    stored = store.get('alice', 2024)
    assert stored.locked_categories == []
    assert stored.category_budgets == {'food': 300.0}


def test_open_without_stored_plan(tmp_path):
    session = BudgetPlanSession.open(BudgetPlanStore(tmp_path), 'bob', 2025, wait_seconds=60)

    assert session.custom_cuts == {}
    assert session.base_monthly_savings_goal == 0.0
    assert not session.has_pending_save


def test_newer_edit_wins_over_slow_background_save():
    saved = []
    started = threading.Event()

    def slow_save(plan):
        if plan.cuts_by_value() == {'food': 10.0}:
            started.set()
            time.sleep(0.3)
        saved.append(plan.cuts_by_value())

    session = BudgetPlanSession(BudgetPlan(user_id='alice', year=2024), slow_save, wait_seconds=0.01)
    session.set_cut('food', 10)
    assert started.wait(2.0)

    session.set_cut('food', 20)
    session.flush()

    assert saved[-1] == {'food': 20.0}
