import unittest
from datetime import datetime, timedelta, timezone

from errors import ValidationError
from normalize.models import Member
from normalize.util import (
    day_window,
    files_changed_from_detail,
    format_api_timestamp,
    hours_between,
    normalize_approvals,
    normalize_commit,
    normalize_member,
    normalize_merge_request,
    normalize_note,
    parse_timestamp,
)


class TestTimestamps(unittest.TestCase):
    def test_parse_timestamp_converts_to_utc(self):
        dt = parse_timestamp('2025-01-06T23:30:00-02:00')
        self.assertEqual(dt, datetime(2025, 1, 7, 1, 30, tzinfo=timezone.utc))
        self.assertEqual(parse_timestamp('2025-01-06T09:00:00.000Z'), datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc))

    def test_parse_timestamp_bad_values(self):
        self.assertIsNone(parse_timestamp(None))
        self.assertIsNone(parse_timestamp(''))
        self.assertIsNone(parse_timestamp('not a date'))

    def test_day_window_covers_whole_days(self):
        start, end = day_window('2025-01-06', '2025-01-07')
        self.assertEqual(start, datetime(2025, 1, 6, tzinfo=timezone.utc))
        self.assertEqual(end, datetime(2025, 1, 8, tzinfo=timezone.utc) - timedelta(milliseconds=1))
        self.assertEqual(format_api_timestamp(end), '2025-01-07T23:59:59.999Z')

    def test_day_window_inverted_range_is_not_rejected(self):
        start, end = day_window('2025-02-01', '2025-01-01')
        self.assertGreater(start, end)

    def test_day_window_rejects_bad_dates(self):
        with self.assertRaises(ValidationError) as ctx:
            day_window('2025-13-01', '2025-01-01')
        self.assertEqual(ctx.exception.field, 'startDate')

    def test_hours_between(self):
        a = parse_timestamp('2025-01-06T09:00:00Z')
        b = parse_timestamp('2025-01-07T09:30:00Z')
        self.assertEqual(hours_between(a, b), 24.5)
        self.assertIsNone(hours_between(a, None))


class TestNormalizeRecords(unittest.TestCase):
    def test_normalize_member_shapes(self):
        self.assertIsNone(normalize_member(None))
        self.assertEqual(normalize_member('alice'), Member('alice', 'alice'))
        self.assertEqual(normalize_member({'username': 'bob', 'name': 'Bob Builder'}), Member('bob', 'Bob Builder'))
        self.assertEqual(normalize_member({'user': {'username': 'carol', 'name': 'Carol'}}), Member('carol', 'Carol'))
        self.assertIsNone(normalize_member({'id': 5}))

    def test_normalize_commit_with_stats(self):
        raw = {
            'id': 'abc123',
            'title': 'Fix retries',
            'message': 'Fix retries\n\nLonger body',
            'author_name': 'Alice Liddell',
            'author_email': 'alice@example.com',
            'authored_date': '2025-01-06T10:00:00Z',
            'committed_date': '2025-01-06T11:00:00Z',
            'stats': {'additions': 5, 'deletions': 2, 'total': 7},
        }
        c = normalize_commit(raw)
        self.assertEqual(c.sha, 'abc123')
        self.assertEqual(c.title, 'Fix retries')
        self.assertEqual(c.total, 7)
        self.assertEqual(c.date, datetime(2025, 1, 6, 11, 0, tzinfo=timezone.utc))

    def test_normalize_commit_without_stats(self):
        c = normalize_commit({'id': 'x', 'message': 'first line\nsecond', 'authored_date': '2025-01-06T10:00:00Z'})
        self.assertEqual(c.title, 'first line')
        self.assertIsNone(c.total)
        self.assertEqual(c.date, datetime(2025, 1, 6, 10, 0, tzinfo=timezone.utc))

    def test_normalize_merge_request(self):
        raw = {
            'iid': 7,
            'title': 'Add payment retries',
            'state': 'merged',
            'created_at': '2025-01-06T09:00:00Z',
            'merged_at': '2025-01-07T09:00:00Z',
            'author': {'username': 'alice', 'name': 'Alice Liddell'},
            'reviewers': [{'username': 'bob', 'name': 'Bob Builder'}, None],
            'labels': ['backend', {'name': 'payments'}],
        }
        mr = normalize_merge_request(raw, project_id=101)
        self.assertEqual(mr.iid, 7)
        self.assertEqual(mr.project_id, 101)
        self.assertEqual(mr.author.username, 'alice')
        self.assertEqual([r.username for r in mr.reviewers], ['bob'])
        self.assertEqual(mr.labels, ['backend', 'payments'])
        self.assertIsNone(mr.assignee)
        self.assertIsNone(mr.closed_at)

    def test_normalize_note_system_flag(self):
        n = normalize_note({'id': 1, 'body': 'approved this merge request', 'author': {'username': 'bob'}, 'system': True,
                            'created_at': '2025-01-06T15:00:00Z'})
        self.assertTrue(n.system)
        self.assertEqual(n.author.username, 'bob')

    def test_normalize_approvals(self):
        raw = {'approved_by': [{'user': {'username': 'bob', 'name': 'Bob'}}, {'user': {'username': 'carol', 'name': 'Carol'}}]}
        self.assertEqual([m.username for m in normalize_approvals(raw)], ['bob', 'carol'])
        self.assertEqual(normalize_approvals({'approved_by': None}), [])
        self.assertEqual(normalize_approvals(None), [])

    def test_files_changed_from_detail(self):
        self.assertEqual(files_changed_from_detail({'changes_count': '4'}), 4)
        self.assertEqual(files_changed_from_detail({'changes_count': '1000+'}), 1000)
        self.assertIsNone(files_changed_from_detail({}))
        self.assertIsNone(files_changed_from_detail(None))


if __name__ == '__main__':
    unittest.main()
