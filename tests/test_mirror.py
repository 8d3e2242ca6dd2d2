# tests/test_mirror.py
from agendrj.mirror import LocalMirror, StoreResult
from agendrj.models import Appointment


def _appt(aid, **kw):
    base = dict(cpf="52998224725", name="X", whatsapp="+5521999999999",
                birth_date="1990-01-01", location_id="loc")
    base.update(kw)
    return Appointment(id=aid, **base)


def test_durable_wins_and_no_duplicate_ids():
    mirror = LocalMirror()
    mirror.remember_pending(_appt("A", queue_position=1))

    merged = mirror.reconcile([_appt("A", queue_position=3), _appt("B")])

    assert sorted(a.id for a in merged) == ["A", "B"]
    a = next(x for x in merged if x.id == "A")
    assert a.queue_position == 3
    assert not mirror.is_pending("A")
    assert mirror.get("B") is not None


def test_pending_local_rows_are_kept():
    mirror = LocalMirror()
    mirror.remember_pending(_appt("local"))

    merged = mirror.reconcile([_appt("B")])

    assert {a.id for a in merged} == {"local", "B"}
    assert mirror.is_pending("local")


def test_clean_rows_missing_from_durable_are_evicted_within_filter():
    mirror = LocalMirror()
    mirror.remember(_appt("gone", cpf="11144477735"))
    mirror.remember(_appt("other", cpf="39053344705"))

    merged = mirror.reconcile([], predicate=lambda a: a.cpf == "11144477735")

    assert merged == []
    assert mirror.get("gone") is None
    # fora do filtro: intocado
    assert mirror.get("other") is not None


def test_store_result_flags():
    cause = RuntimeError("down")
    assert StoreResult.ok([1]).degraded is False
    res = StoreResult.fallback([1], cause)
    assert res.degraded and res.cause is cause and res.data == [1]
