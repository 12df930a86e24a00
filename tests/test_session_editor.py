from __future__ import annotations

import json
import unittest
from pathlib import Path
from unittest import mock

from src.lib.document import Document, Sentence, Token, Transformation, TransformStatus, UnknownTransformError
from src.lib.service import ServiceError, StatusUpdate, document_from_payload
from src.lib.session import InteractiveEditor, SessionError

FIXTURE = Path(__file__).parent / "fixtures" / "he_hzve.json"


def _load_fixture() -> Document:
    return document_from_payload(json.loads(FIXTURE.read_text(encoding="utf-8")))


def _has_have_had() -> Document:
    has = Token(2, "has", " ")
    sentence = Sentence(
        original_sentence=(Token(1, "He", " "), has, Token(3, "it", "")),
        transformations=[
            Transformation(tokens_affected=(has,), tokens_added=(Token(5, "have", " "),), has_replacement=True),
            Transformation(tokens_affected=(has,), tokens_added=(Token(6, "had", " "),), has_replacement=True),
        ],
    )
    return Document(sentences=[sentence], job_id=7)


def _persisting_client() -> mock.Mock:
    client = mock.Mock()
    client.persist = True
    return client


class TestInteractiveEditor(unittest.TestCase):
    def setUp(self) -> None:
        self.editor = InteractiveEditor(_load_fixture())
        self.t0, self.t1, self.t2, self.t3, self.t4 = self.editor.transformations

    def _available_indices(self, editor: InteractiveEditor | None = None) -> list[int]:
        return [t.transform_index for t in (editor or self.editor).available_transforms]

    def test_initial_available_cache(self) -> None:
        self.assertEqual(self._available_indices(), [0, 2, 3, 4])
        self.assertEqual(self.editor.num_sentences, 2)
        self.assertEqual(self.editor.num_transformations, 5)
        self.assertEqual(self.editor.history, ())
        self.assertIsNone(self.editor.last_transform())
        self.assertFalse(self.editor.can_undo_last())
        self.assertEqual(self.editor.grammar_score(), 61.5)

    def test_available_cache_is_a_copy(self) -> None:
        self.editor.available_transforms.clear()
        self.assertEqual(len(self.editor.available_transforms), 4)

    def test_accept_updates_cache_and_history(self) -> None:
        self.assertTrue(self.editor.accept_correction(self.t0))

        self.assertEqual(self._available_indices(), [1, 2, 3, 4])
        self.assertEqual(self.editor.history, (0,))
        self.assertIs(self.editor.last_transform(), self.t0)
        self.assertTrue(self.editor.can_undo_last())

    def test_failed_action_leaves_history_untouched(self) -> None:
        self.assertFalse(self.editor.accept_correction(self.t1))
        self.assertFalse(self.editor.reject_correction(self.t1))
        self.assertEqual(self.editor.history, ())

    def test_apply_all_accepts_everything_reachable(self) -> None:
        applied = self.editor.apply_all()

        self.assertEqual(applied, 5)
        self.assertEqual(self.editor.current_text(), "He has been there before. It's okay.")
        self.assertEqual(self.editor.available_transforms, [])
        self.assertEqual(self.editor.history, (0, 1, 2, 3, 4))

    def test_apply_all_can_skip_suggestions(self) -> None:
        applied = self.editor.apply_all(skip_suggestions=True)

        self.assertEqual(applied, 4)
        self.assertEqual(self.editor.current_text(), "He has been there before. It's ok.")
        self.assertEqual(self._available_indices(), [4])
        self.assertIsNone(self.editor.next_transform(ignore_suggestions=True))
        self.assertFalse(self.editor.has_next_transform(ignore_suggestions=True))
        self.assertTrue(self.editor.has_next_transform())

    def test_undo_all_restores_original_text(self) -> None:
        self.editor.apply_all()

        undone = self.editor.undo_all()

        self.assertEqual(undone, 5)
        self.assertEqual(self.editor.current_text(), self.editor.original_text())
        self.assertEqual(self.editor.history, ())
        self.assertEqual(self._available_indices(), [0, 2, 3, 4])
        self.assertEqual(self.editor.all_clean(), self.editor.transformations)

    def test_undo_last_without_history(self) -> None:
        self.assertFalse(self.editor.undo_last())
        self.assertEqual(self.editor.undo_all(), 0)

    def test_reject_then_undo(self) -> None:
        self.editor.reject_correction(self.t2)
        self.assertNotIn(2, self._available_indices())

        self.assertTrue(self.editor.undo_last())
        self.assertEqual(self.t2.status, TransformStatus.CLEAN)
        self.assertEqual(self._available_indices(), [0, 2, 3, 4])

    def test_failed_undo_keeps_history(self) -> None:
        self.editor.accept_correction(self.t0)
        with mock.patch("src.lib.session.editor.undo_transform", return_value=False):
            self.assertFalse(self.editor.undo_last())
        self.assertEqual(self.editor.history, (0,))

    def test_mutually_exclusive_alternatives(self) -> None:
        editor = InteractiveEditor(_has_have_had())
        have, had = editor.transformations

        self.assertEqual(editor.overlapping_transforms(have), [have, had])
        self.assertTrue(editor.accept_correction(have))
        self.assertEqual(editor.available_transforms, [])
        self.assertEqual(editor.current_text(), "He have it")

        self.assertTrue(editor.undo_last())
        self.assertEqual(editor.available_transforms, [have, had])

        self.assertTrue(editor.accept_correction(had))
        self.assertEqual(editor.current_text(), "He had it")
        self.assertFalse(editor.can_make_transform(have))

    def test_apply_all_picks_first_of_exclusive_alternatives(self) -> None:
        editor = InteractiveEditor(_has_have_had())
        have, had = editor.transformations

        self.assertEqual(editor.apply_all(), 1)
        self.assertEqual(have.status, TransformStatus.ACCEPTED)
        self.assertEqual(had.status, TransformStatus.CLEAN)
        self.assertFalse(had.is_available)
        self.assertEqual(editor.apply_all(), 0)

    def test_overlapping_transforms_require_identical_tokens(self) -> None:
        self.assertEqual(self.editor.overlapping_group(self.t0), [self.t0, self.t1])
        self.assertEqual(self.editor.overlapping_transforms(self.t0), [self.t0])

    def test_ignore_no_replacement_filters_cache(self) -> None:
        befor = Token(4, "befor", "")
        sentence = Sentence(
            original_sentence=(Token(3, "there", " "), befor),
            transformations=[
                Transformation(tokens_affected=(befor,), tokens_added=(), has_replacement=False),
                Transformation(tokens_affected=(befor,), tokens_added=(Token(9, "before", ""),), has_replacement=True),
            ],
        )

        editor = InteractiveEditor(Document(sentences=[sentence]), ignore_no_replacement=True)

        self.assertEqual(self._available_indices(editor), [1])

    def test_unknown_transform_raises(self) -> None:
        with self.assertRaises(UnknownTransformError):
            self.editor.transform(99)
        stranger = Transformation(tokens_affected=(Token(0, "He", " "),), tokens_added=(), has_replacement=False)
        with self.assertRaises(UnknownTransformError):
            self.editor.accept_correction(stranger)

    def test_snapshot_restores_decisions(self) -> None:
        self.editor.accept_correction(self.t0)
        self.editor.reject_correction(self.t2)

        restored = InteractiveEditor(document_from_payload(self.editor.snapshot().dump()))

        self.assertEqual(restored.current_text(), "He have be there befor. Its ok.")
        self.assertEqual(restored.history, (0, 2))
        self.assertEqual(self._available_indices(restored), [1, 3, 4])

    def test_usage_requires_client_and_key(self) -> None:
        with self.assertRaises(SessionError):
            self.editor.usage()

        client = mock.Mock()
        client.get_usage.return_value = {"apiRemainToday": 10}
        editor = InteractiveEditor(_load_fixture(), client=client, api_key="user-key")

        self.assertEqual(editor.usage(), {"apiRemainToday": 10})
        client.get_usage.assert_called_once_with("user-key")


class TestStatusPersistence(unittest.TestCase):
    def setUp(self) -> None:
        self.client = _persisting_client()
        self.editor = InteractiveEditor(_load_fixture(), client=self.client, api_key="user-key")
        self.t0, self.t1, self.t2, self.t3, self.t4 = self.editor.transformations

    def _last_update(self) -> StatusUpdate:
        update, api_key = self.client.save_transform_status.call_args.args
        self.assertEqual(api_key, "user-key")
        return update

    def test_accept_reports_text_before_change(self) -> None:
        self.editor.accept_correction(self.t0)

        update = self._last_update()
        self.assertEqual(update.job_id, "job-42")
        self.assertEqual(update.sentence_index, 0)
        self.assertEqual(update.transform_index, 0)
        self.assertEqual(update.sentence, "He hzve be there befor. ")
        self.assertEqual(update.offset, 3)
        self.assertEqual(update.status, "accept")

    def test_reject_and_undo_report_status(self) -> None:
        self.editor.reject_correction(self.t2)
        update = self._last_update()
        self.assertEqual((update.status, update.offset, update.transform_index), ("reject", 17, 2))

        self.editor.undo_last()
        update = self._last_update()
        self.assertEqual(update.status, "clean")
        self.assertEqual(update.offset, 17)
        self.assertEqual(self.client.save_transform_status.call_count, 2)

    def test_index_is_relative_to_sentence(self) -> None:
        self.editor.accept_correction(self.t3)
        update = self._last_update()
        self.assertEqual((update.sentence_index, update.transform_index), (1, 0))
        self.assertEqual(update.sentence, "Its ok.")
        self.assertEqual(update.offset, 0)

    def test_undo_reports_text_after_reset(self) -> None:
        self.editor.accept_correction(self.t0)
        self.editor.undo_last()

        update = self._last_update()
        self.assertEqual(update.sentence, "He hzve be there befor. ")
        self.assertEqual(update.offset, 3)
        self.assertEqual(update.status, "clean")

    def test_service_failure_is_logged_not_rolled_back(self) -> None:
        self.client.save_transform_status.side_effect = ServiceError("boom", status_code=500)

        with self.assertLogs("src.lib.session.editor", level="WARNING") as captured:
            self.assertTrue(self.editor.accept_correction(self.t0))

        self.assertEqual(self.t0.status, TransformStatus.ACCEPTED)
        self.assertEqual(self.editor.history, (0,))
        self.assertIn("boom", captured.output[0])

    def test_no_notification_without_persist(self) -> None:
        self.client.persist = False
        self.editor.accept_correction(self.t0)
        self.client.save_transform_status.assert_not_called()

    def test_no_notification_without_api_key(self) -> None:
        editor = InteractiveEditor(_load_fixture(), client=self.client)
        editor.accept_correction(editor.transformations[0])
        self.client.save_transform_status.assert_not_called()


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
