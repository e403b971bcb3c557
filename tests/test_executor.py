import unittest
from contextlib import contextmanager

from host.catalog import JsonCatalogHost
from host.context import ContextSnapshot
from host.executor import UNDO_STEP_NAME, EditExecutor, UndoSlot
from protocol.errors import (
    HostError,
    NoSelectionError,
    NothingToUndoError,
    UnsupportedMediaError,
)
from protocol.translator import translate


def make_catalog(count=2, video_first=False, selected=True):
    photos = []
    for i in range(1, count + 1):
        photos.append({
            "id": f"p{i}",
            "path": f"img{i}.dng",
            "is_video": video_first and i == 1,
            "settings": {"Exposure2012": 0.0, "Contrast2012": 5, "Temperature": 5500, "Tint": 10},
        })
    return JsonCatalogHost({
        "module": "Develop",
        "selection": [p["id"] for p in photos] if selected else [],
        "photos": photos,
    })


class FlakyCatalog(JsonCatalogHost):
    """Fails the history step whose name ends with ``fail_on``."""

    fail_on = ""

    @contextmanager
    def write_access(self, name):
        with super().write_access(name) as host:
            yield host
            if self.fail_on and name.endswith(self.fail_on):
                raise HostError("settings are locked")


CONTEXT = ContextSnapshot("Develop", 2, current_temperature=5500, current_tint=10)


class EditExecutorTests(unittest.TestCase):
    def setUp(self):
        self.host = make_catalog()
        self.slot = UndoSlot()
        self.executor = EditExecutor(self.host, self.slot)

    def test_one_history_step_per_setting(self):
        edit = translate({"exposure": 0.5, "contrast": 20}, CONTEXT)
        result = self.executor.apply(edit)

        self.assertTrue(result.success)
        self.assertEqual(result.applied, ["Exposure", "Contrast"])
        self.assertEqual(result.photo_count, 2)
        self.assertEqual(self.host.history_names(), ["AI Coach: Exposure", "AI Coach: Contrast"])
        for photo_id in ("p1", "p2"):
            settings = self.host.photo(photo_id).develop_settings()
            self.assertEqual(settings["Exposure2012"], 0.5)
            self.assertEqual(settings["Contrast2012"], 20)

    def test_undo_restores_exactly_and_only_once(self):
        before = {pid: self.host.photo(pid).develop_settings() for pid in ("p1", "p2")}
        self.executor.apply(translate({"exposure": 1.5, "temperature": 10, "vignetteAmount": -30}, CONTEXT))
        self.assertNotEqual(self.host.photo("p1").develop_settings(), before["p1"])

        self.assertEqual(self.executor.undo(), 2)
        for pid in ("p1", "p2"):
            self.assertEqual(self.host.photo(pid).develop_settings(), before[pid])
        self.assertEqual(self.host.history_names()[-1], UNDO_STEP_NAME)
        self.assertFalse(self.slot.pending)

        with self.assertRaises(NothingToUndoError):
            self.executor.undo()

    def test_new_edit_replaces_pending_snapshot(self):
        self.executor.apply(translate({"exposure": 1.0}, CONTEXT))
        self.executor.apply(translate({"exposure": 2.0}, CONTEXT))
        self.executor.undo()
        # the first edit became permanent
        self.assertEqual(self.host.photo("p1").develop_settings()["Exposure2012"], 1.0)

    def test_no_selection_changes_nothing(self):
        host = make_catalog(selected=False)
        executor = EditExecutor(host, UndoSlot())
        with self.assertRaises(NoSelectionError):
            executor.apply(translate({"exposure": 0.5}, CONTEXT))
        self.assertEqual(host.history_names(), [])
        self.assertEqual(host.photo("p1").develop_settings()["Exposure2012"], 0.0)
        self.assertFalse(executor.undo_slot.pending)

    def test_video_primary_is_rejected(self):
        host = make_catalog(video_first=True)
        executor = EditExecutor(host, UndoSlot())
        with self.assertRaises(UnsupportedMediaError):
            executor.apply(translate({"exposure": 0.5}, CONTEXT))
        self.assertEqual(host.history_names(), [])

    def test_partial_application_keeps_earlier_steps(self):
        host = FlakyCatalog(make_catalog().data)
        host.fail_on = "Contrast"
        executor = EditExecutor(host, UndoSlot())

        result = executor.apply(translate({"exposure": 0.5, "contrast": 20, "clarity": 10}, CONTEXT))

        self.assertTrue(result.success)
        self.assertEqual(result.applied, ["Exposure", "Clarity"])
        self.assertEqual(result.failed, [("Contrast", "settings are locked")])
        settings = host.photo("p1").develop_settings()
        self.assertEqual(settings["Exposure2012"], 0.5)
        self.assertEqual(settings["Contrast2012"], 5)
        self.assertEqual(settings["Clarity2012"], 10)
        self.assertEqual(host.history_names(), ["AI Coach: Exposure", "AI Coach: Clarity"])

    def test_snapshot_only_kept_when_something_applied(self):
        host = FlakyCatalog(make_catalog().data)
        host.fail_on = "Exposure"
        executor = EditExecutor(host, UndoSlot())
        result = executor.apply(translate({"exposure": 0.5}, CONTEXT))
        self.assertFalse(result.success)
        self.assertFalse(executor.undo_slot.pending)

    def test_failed_undo_keeps_snapshot_for_retry(self):
        host = FlakyCatalog(make_catalog().data)
        executor = EditExecutor(host, UndoSlot())
        executor.apply(translate({"exposure": 1.0}, CONTEXT))

        host.fail_on = UNDO_STEP_NAME
        with self.assertRaises(HostError):
            executor.undo()
        self.assertTrue(executor.undo_slot.pending)
        self.assertEqual(host.photo("p1").develop_settings()["Exposure2012"], 1.0)

        host.fail_on = ""
        self.assertEqual(executor.undo(), 2)
        self.assertFalse(executor.undo_slot.pending)
        self.assertEqual(host.photo("p1").develop_settings()["Exposure2012"], 0.0)
        self.assertEqual(host.history_names()[-1], UNDO_STEP_NAME)


if __name__ == "__main__":
    unittest.main()
