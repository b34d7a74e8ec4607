# Services package.
#
# Each module exposes async handler functions for one part of the domain:
#
#   profile_service: public profile of a person relative to a viewer
#   follower_service: follow / unfollow (idempotent edges)
#   favorite_service: favorite / unfavorite an article (idempotent edges)
#   article_service: list, feed, details, create, edit, delete
#   comment_service: list, add, delete comments on an article
#   person_service: register, current user, update
#   tag_service: list tags
#
# Every handler takes an AsyncSession as its first argument and the acting
# username as an explicit argument.  Handlers flush but never commit; the
# caller owns the transaction through ``get_db`` or ``unit_of_work``.
# Domain failures are raised as ``conduit.exceptions.ConduitError``.
