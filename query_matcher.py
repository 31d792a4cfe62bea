import logging

logger = logging.getLogger(__name__)


class QueryMatcher:
    def __init__(self, query=""):
        self.query = query

    def set_query(self, query):
        """Replace the current query. None is treated as an empty query."""
        self.query = query or ""
        logger.debug(f"Search query set to '{self.query}'")

    def filter(self, results):
        """
        Return the results whose text contains the query, ignoring case.

        An empty query matches nothing: no search means no highlighted text.
        Input order is preserved.
        """
        if not self.query:
            return []

        needle = self.query.casefold()
        return [result for result in results if needle in result.text.casefold()]
