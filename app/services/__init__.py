# Services package.
#
# Each module exposes the async data-access functions for one entity:
#
#   post_service     — CRUD + pagination + changesets for Post
#   comment_service  — same for Comment, plus listing by parent post
#
# All service functions accept an AsyncSession as their first argument
# so that the caller controls the transaction boundary (the router layer
# does it through the ``get_db`` dependency).  ``change_post`` and
# ``change_comment`` are the exception: they are pure and take no session.
