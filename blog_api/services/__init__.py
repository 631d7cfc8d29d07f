# Services package.
#
# Each module is a set of async functions for one concern:
#
#   filters          - query parameters + viewer -> ArticleQuery (no I/O)
#   article_store    - executes ArticleQuery, writes article rows
#   derived_fields   - viewer-relative favorited / author.following
#   tag_service      - tag reconciliation and the tag vocabulary
#   mapper           - rows -> ArticleResponse
#   article_service  - list / get / create orchestration
#   user_service     - registration, login, identity lookup
#
# Functions that touch the database take an AsyncSession as their first
# argument.  Only article_service.create_article commits on its own; every
# other transaction boundary is owned by the ``get_db`` dependency.
