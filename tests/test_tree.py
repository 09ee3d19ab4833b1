# ABOUTME: Tests for comment forest reconstruction.
# ABOUTME: Verifies nesting, input-order preservation and orphan promotion.

from conftest import make_comment

from hn_digest.tree import build_comment_tree, iter_tree


def test_nests_children_under_parents():
    comments = [make_comment(1), make_comment(2, 1), make_comment(3, 2), make_comment(4)]

    roots = build_comment_tree(comments)

    assert [r.remote_comment_id for r in roots] == [1, 4]
    assert [c.remote_comment_id for c in roots[0].children] == [2]
    assert [c.remote_comment_id for c in roots[0].children[0].children] == [3]


def test_orphan_is_promoted_to_root():
    """Parent 999 is not in the set, so the comment becomes a root."""
    comments = [make_comment(1), make_comment(5, 999)]

    roots = build_comment_tree(comments)

    assert [r.remote_comment_id for r in roots] == [1, 5]


def test_order_follows_input():
    comments = [make_comment(3, 1), make_comment(1), make_comment(2, 1), make_comment(9)]

    roots = build_comment_tree(comments)

    assert [r.remote_comment_id for r in roots] == [1, 9]
    assert [c.remote_comment_id for c in roots[0].children] == [3, 2]


def test_empty_list():
    assert build_comment_tree([]) == []


def test_no_comment_is_lost():
    comments = [make_comment(i, parent) for i, parent in [(1, None), (2, 1), (3, 7), (4, 3), (5, 2)]]

    roots = build_comment_tree(comments)

    assert sorted(node.remote_comment_id for _, node in iter_tree(roots)) == [1, 2, 3, 4, 5]


def test_duplicate_ids_keep_first_occurrence():
    comments = [make_comment(1, body_text="first"), make_comment(1, body_text="second")]

    roots = build_comment_tree(comments)

    assert len(roots) == 1
    assert roots[0].body_text == "first"


def test_iter_tree_depths():
    comments = [make_comment(1), make_comment(2, 1), make_comment(3, 2), make_comment(4)]
    walked = [(depth, node.remote_comment_id) for depth, node in iter_tree(build_comment_tree(comments))]
    assert walked == [(0, 1), (1, 2), (2, 3), (0, 4)]


def test_input_comments_are_not_mutated():
    comments = [make_comment(1), make_comment(2, 1)]
    build_comment_tree(comments)
    assert not hasattr(comments[0], "children")


def test_parent_cycle_is_not_dropped():
    comments = [make_comment(1, 2), make_comment(2, 1), make_comment(3), make_comment(4, 1)]

    roots = build_comment_tree(comments)

    assert [r.remote_comment_id for r in roots] == [1, 2, 3]
    assert sorted(node.remote_comment_id for _, node in iter_tree(roots)) == [1, 2, 3, 4]
