import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from relocate_media.errors import AccessDenied, InvalidSizeError
from relocate_media.executor import RelocationEngine
from relocate_media.guard import PathGuard


def _write(path: Path, size: int = 0, content: bytes | None = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        if content is not None:
            f.write(content)
        else:
            f.truncate(size)
    return path


class EngineTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.base = Path(self._tmp.name).resolve()
        self.root = self.base / "root"
        self.root.mkdir()
        self.source = self.root / "source"
        self.target = self.root / "target"
        self.engine = RelocationEngine(PathGuard(self.root))

    def tearDown(self):
        self._tmp.cleanup()


class TestScatter(EngineTestCase):
    def test_moves_and_renames_matching_files(self):
        _write(self.source / "FolderA" / "pic.png", content=b"png")

        outcome = self.engine.scatter(self.source, self.target)

        self.assertEqual(outcome.files_moved, 1)
        self.assertFalse((self.source / "FolderA" / "pic.png").exists())
        self.assertEqual((self.target / "FolderA_pic.png").read_bytes(), b"png")
        self.assertIn(f"[INFO] Moved: pic.png to {self.target / 'FolderA_pic.png'}", outcome.log)

    def test_creates_missing_target(self):
        _write(self.source / "A" / "x.txt", 1)

        outcome = self.engine.scatter(self.source, self.target)

        self.assertTrue(self.target.is_dir())
        self.assertEqual(outcome.folders_created, 1)

    def test_size_boundaries(self):
        _write(self.source / "A" / "exact_min.bin", 100)
        _write(self.source / "A" / "exact_max.bin", 200)
        _write(self.source / "A" / "under_min.bin", 99)
        _write(self.source / "A" / "over_max.bin", 201)

        outcome = self.engine.scatter(self.source, self.target, min_size=100, max_size=200)

        moved = sorted(p.name for p in self.target.iterdir())
        self.assertEqual(moved, ["A_exact_max.bin", "A_exact_min.bin"])
        self.assertEqual(outcome.files_moved, 2)
        self.assertEqual(outcome.files_skipped, 2)

    def test_extension_filter_is_case_insensitive(self):
        _write(self.source / "Trip" / "photo.jpg", 1)
        _write(self.source / "Trip" / "clip.mov", 1)

        outcome = self.engine.scatter(self.source, self.target, extensions=[".JPG"])

        self.assertEqual(outcome.files_moved, 1)
        self.assertTrue((self.target / "Trip_photo.jpg").exists())
        self.assertTrue((self.source / "Trip" / "clip.mov").exists())

    def test_no_matches_is_not_an_error(self):
        _write(self.source / "A" / "small.txt", 10)

        outcome = self.engine.scatter(self.source, self.target, min_size=1000)

        self.assertEqual(outcome.files_moved, 0)
        self.assertTrue(outcome.ok)

    def test_missing_source_is_reported(self):
        outcome = self.engine.scatter(self.source, self.target)

        self.assertTrue(outcome.source_missing)
        self.assertEqual(outcome.files_moved, 0)
        self.assertFalse(self.target.exists())
        self.assertTrue(any("does not exist" in line for line in outcome.log))

    def test_target_outside_root_is_denied(self):
        _write(self.source / "A" / "x.txt", 1)

        with self.assertRaises(AccessDenied):
            self.engine.scatter(self.source, self.base / "escape")

        self.assertTrue((self.source / "A" / "x.txt").exists())
        self.assertFalse((self.base / "escape").exists())

    def test_dotdot_target_is_denied(self):
        _write(self.source / "A" / "x.txt", 1)

        with self.assertRaises(AccessDenied):
            self.engine.scatter(self.source, self.root / ".." / "escape")

    def test_access_denied_aborts_the_batch(self):
        _write(self.source / "A" / "one.txt", 1)
        _write(self.source / "B" / "two.txt", 1)
        guard = PathGuard(self.root)
        real_check = guard.check

        def deny_second(path):
            result = real_check(path)
            if Path(path).name == "B_two.txt":
                return real_check(self.base / "nope")
            return result

        guard.check = deny_second
        engine = RelocationEngine(guard)

        with self.assertRaises(AccessDenied):
            engine.scatter(self.source, self.target)

        # The first move stays committed; there is no rollback.
        self.assertTrue((self.target / "A_one.txt").exists())
        self.assertTrue((self.source / "B" / "two.txt").exists())

    def test_collision_is_refused_by_default(self):
        _write(self.source / "a" / "b_c.txt", content=b"first")
        _write(self.source / "a_b" / "c.txt", content=b"second")

        outcome = self.engine.scatter(self.source, self.target)

        self.assertEqual(outcome.files_moved, 1)
        self.assertEqual(outcome.files_failed, 1)
        self.assertFalse(outcome.ok)
        self.assertEqual((self.target / "a_b_c.txt").read_bytes(), b"first")
        self.assertEqual((self.source / "a_b" / "c.txt").read_bytes(), b"second")
        self.assertIn("Destination exists", outcome.errors[0]["error"])

    def test_underscore_in_folder_name_is_flagged(self):
        _write(self.source / "my_pics" / "a.png", 1)

        outcome = self.engine.scatter(self.source, self.target)

        self.assertEqual(outcome.files_moved, 1)
        self.assertTrue(any(line.startswith("[WARN] Folder name contains '_'") for line in outcome.log))

    def test_overwrite_replaces_existing_destination(self):
        _write(self.target / "A_x.txt", content=b"old")
        _write(self.source / "A" / "x.txt", content=b"new")

        engine = RelocationEngine(PathGuard(self.root), overwrite=True)
        outcome = engine.scatter(self.source, self.target)

        self.assertEqual(outcome.files_moved, 1)
        self.assertEqual((self.target / "A_x.txt").read_bytes(), b"new")

    def test_target_inside_source_is_not_rescattered(self):
        target = self.source / "flat"
        _write(target / "Old_file.txt", 1)
        _write(self.source / "A" / "x.txt", 1)

        outcome = self.engine.scatter(self.source, target)

        self.assertEqual(outcome.files_moved, 1)
        self.assertEqual(sorted(p.name for p in target.iterdir()), ["A_x.txt", "Old_file.txt"])

    def test_dry_run_changes_nothing(self):
        _write(self.source / "A" / "x.txt", 1)

        engine = RelocationEngine(PathGuard(self.root), dry_run=True)
        outcome = engine.scatter(self.source, self.target)

        self.assertEqual(outcome.files_moved, 1)
        self.assertEqual(outcome.folders_created, 1)
        self.assertTrue(outcome.dry_run)
        self.assertFalse(self.target.exists())
        self.assertTrue((self.source / "A" / "x.txt").exists())
        self.assertTrue(any(line.startswith("[INFO] Would move:") for line in outcome.log))

    def test_invalid_size_bounds(self):
        with self.assertRaises(InvalidSizeError):
            self.engine.scatter(self.source, self.target, min_size=10, max_size=5)
        with self.assertRaises(InvalidSizeError):
            self.engine.scatter(self.source, self.target, min_size=-1)

    @patch("relocate_media.executor.shutil.move")
    def test_os_error_is_recorded_per_file(self, mock_move):
        mock_move.side_effect = OSError("disk full")
        _write(self.source / "A" / "x.txt", 1)

        outcome = self.engine.scatter(self.source, self.target)

        self.assertEqual(outcome.files_moved, 0)
        self.assertEqual(outcome.files_failed, 1)
        self.assertEqual(outcome.errors[0]["error"], "disk full")

    def test_target_that_is_a_file_ends_the_run(self):
        _write(self.source / "A" / "x.txt", 1)
        _write(self.target, content=b"not a folder")

        outcome = self.engine.scatter(self.source, self.target)

        self.assertFalse(outcome.ok)
        self.assertIn("Cannot create target directory", outcome.aborted)
        self.assertEqual(outcome.files_moved, 0)
        self.assertTrue((self.source / "A" / "x.txt").exists())
        self.assertEqual(self.target.read_bytes(), b"not a folder")

    def test_unreadable_file_is_counted_as_skipped(self):
        _write(self.source / "A" / "locked.txt", 1)
        _write(self.source / "A" / "open.txt", 1)

        def lstat(path):
            if path.name == "locked.txt":
                raise PermissionError(13, "Permission denied", str(path))
            return os.lstat(path)

        with patch.object(Path, "lstat", autospec=True, side_effect=lstat):
            outcome = self.engine.scatter(self.source, self.target)

        self.assertEqual(outcome.files_moved, 1)
        self.assertEqual(outcome.files_skipped, 1)
        self.assertTrue(any(line.startswith("[WARN] Skipping unreadable file:") for line in outcome.log))

    def test_on_message_receives_progress(self):
        _write(self.source / "A" / "x.txt", 1)
        callback = MagicMock()

        engine = RelocationEngine(PathGuard(self.root), on_message=callback)
        engine.scatter(self.source, self.target)

        levels = [c.args[0] for c in callback.call_args_list]
        messages = [c.args[1] for c in callback.call_args_list]
        self.assertIn("INFO", levels)
        self.assertTrue(any(m.startswith("Moved: x.txt") for m in messages))


class TestGather(EngineTestCase):
    def test_restores_into_existing_folder(self):
        (self.source / "FolderA").mkdir(parents=True)
        _write(self.target / "FolderA_pic.png", content=b"png")

        outcome = self.engine.gather(self.target, self.source)

        self.assertEqual(outcome.files_moved, 1)
        self.assertEqual(outcome.folders_created, 0)
        self.assertEqual((self.source / "FolderA" / "pic.png").read_bytes(), b"png")

    def test_recreates_missing_folder(self):
        self.source.mkdir()
        _write(self.target / "Vacation_beach.png", 1)
        _write(self.target / "Vacation_sunset.png", 1)

        outcome = self.engine.gather(self.target, self.source)

        self.assertEqual(outcome.folders_created, 1)
        self.assertEqual(outcome.files_moved, 2)
        self.assertTrue((self.source / "Vacation" / "beach.png").exists())

    def test_names_without_prefix_are_left_alone(self):
        _write(self.target / "report.pdf", content=b"pdf")
        _write(self.target / "_leading.txt", 1)

        outcome = self.engine.gather(self.target, self.source)

        self.assertEqual(outcome.files_moved, 0)
        self.assertEqual(outcome.files_skipped, 2)
        self.assertEqual((self.target / "report.pdf").read_bytes(), b"pdf")
        self.assertTrue(outcome.ok)

    def test_splits_on_first_underscore(self):
        _write(self.target / "Trip_IMG_0001.jpg", 1)

        self.engine.gather(self.target, self.source)

        self.assertTrue((self.source / "Trip" / "IMG_0001.jpg").exists())

    def test_missing_flat_directory_is_reported(self):
        outcome = self.engine.gather(self.target, self.source)

        self.assertTrue(outcome.source_missing)
        self.assertEqual(outcome.files_moved, 0)

    def test_original_outside_root_is_denied(self):
        _write(self.target / "A_x.txt", 1)

        with self.assertRaises(AccessDenied):
            self.engine.gather(self.target, self.base / "elsewhere")

        self.assertTrue((self.target / "A_x.txt").exists())

    def test_dotdot_folder_prefix_is_denied(self):
        """An encoded folder of '..' must not climb out of the root."""
        _write(self.target / ".._escape.txt", 1)

        with self.assertRaises(AccessDenied):
            self.engine.gather(self.target, self.root)

        self.assertTrue((self.target / ".._escape.txt").exists())
        self.assertFalse((self.base / "escape.txt").exists())

    def test_existing_destination_is_refused(self):
        _write(self.source / "A" / "x.txt", content=b"keep")
        _write(self.target / "A_x.txt", content=b"incoming")

        outcome = self.engine.gather(self.target, self.source)

        self.assertEqual(outcome.files_failed, 1)
        self.assertEqual((self.source / "A" / "x.txt").read_bytes(), b"keep")
        self.assertTrue((self.target / "A_x.txt").exists())

    def test_file_in_place_of_folder_fails_only_that_file(self):
        _write(self.source / "A", content=b"plain file")
        _write(self.target / "A_x.txt", 1)
        _write(self.target / "B_y.txt", 1)

        outcome = self.engine.gather(self.target, self.source)

        self.assertEqual(outcome.files_failed, 1)
        self.assertEqual(outcome.files_moved, 1)
        self.assertEqual(outcome.errors[0]["dst"], str(self.source / "A" / "x.txt"))
        self.assertTrue((self.target / "A_x.txt").exists())
        self.assertTrue((self.source / "B" / "y.txt").exists())
        self.assertEqual((self.source / "A").read_bytes(), b"plain file")

    def test_dry_run_reports_file_in_place_of_folder(self):
        _write(self.source / "A", content=b"plain file")
        _write(self.target / "A_x.txt", 1)

        engine = RelocationEngine(PathGuard(self.root), dry_run=True)
        outcome = engine.gather(self.target, self.source)

        self.assertEqual(outcome.files_failed, 1)
        self.assertEqual(outcome.files_moved, 0)

    def test_dry_run_counts_each_new_folder_once(self):
        _write(self.target / "New_a.txt", 1)
        _write(self.target / "New_b.txt", 1)

        engine = RelocationEngine(PathGuard(self.root), dry_run=True)
        outcome = engine.gather(self.target, self.source)

        self.assertEqual(outcome.folders_created, 1)
        self.assertEqual(outcome.files_moved, 2)
        self.assertFalse(self.source.exists())

    def test_report_is_json_ready(self):
        _write(self.target / "A_x.txt", 1)

        report = self.engine.gather(self.target, self.source).to_report()

        self.assertEqual(report["operation"], "gather")
        self.assertEqual(report["files_moved"], 1)
        self.assertEqual(report["moves"][0]["new"], str(self.source / "A" / "x.txt"))


if __name__ == "__main__":
    unittest.main()
