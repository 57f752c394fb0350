class RecommendationError(Exception):
    """Any failure that ends a recommendation request."""


class FilmNotFoundError(RecommendationError):
    pass


class CatalogStoreError(RecommendationError):
    pass


class ReviewFetchError(RecommendationError):
    pass


class ReviewParseError(RecommendationError):
    pass
