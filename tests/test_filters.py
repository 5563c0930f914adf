import unittest

from scoring.filters import is_bot, is_meaningful_comment


class TestIsBot(unittest.TestCase):
    def test_markers_case_insensitive(self):
        for name in ('ci-pipeline-bot', 'SecurityScanner', 'system', 'Pipeline-Runner', 'gitlab-ci', 'AutoMerger', 'renovate-bot'):
            self.assertTrue(is_bot(name), name)

    def test_humans(self):
        for name in ('alice', 'bob', 'carol', 'jsmith'):
            self.assertFalse(is_bot(name), name)

    def test_empty(self):
        self.assertFalse(is_bot(None))
        self.assertFalse(is_bot(''))


class TestMeaningfulComment(unittest.TestCase):
    def test_too_short(self):
        self.assertFalse(is_meaningful_comment('ok'))
        self.assertFalse(is_meaningful_comment('bug'))
        self.assertFalse(is_meaningful_comment('lgtm'))
        self.assertFalse(is_meaningful_comment('   +1   '))
        self.assertFalse(is_meaningful_comment(None))

    def test_acknowledgements_rejected(self):
        self.assertFalse(is_meaningful_comment('Thanks'))
        self.assertFalse(is_meaningful_comment('Approved'))
        self.assertFalse(is_meaningful_comment('thanks for the quick turnaround on this one'))
        self.assertFalse(is_meaningful_comment('this all looks good to me lgtm'))
        self.assertFalse(is_meaningful_comment('Looks good to me'))

    def test_acknowledgement_with_substantive_remark_accepted(self):
        self.assertTrue(is_meaningful_comment('lgtm but please fix the null check'))
        self.assertTrue(is_meaningful_comment('thanks, that fixed the issue'))

    def test_acknowledgement_prefix_with_keyword_is_kept(self):
        self.assertTrue(is_meaningful_comment('thanks for the update'))
        self.assertTrue(is_meaningful_comment('approved after the change'))

    def test_short_comment_needs_keyword(self):
        self.assertFalse(is_meaningful_comment('nice work!!'))
        self.assertTrue(is_meaningful_comment('typo bug here'))
        self.assertTrue(is_meaningful_comment('error on L12'))

    def test_long_comment_accepted(self):
        self.assertTrue(is_meaningful_comment('Can we move this helper into the shared module?'))


if __name__ == '__main__':
    unittest.main()
