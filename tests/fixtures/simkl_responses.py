"""
Mock Simkl API responses for testing.

Contains realistic responses from the Simkl API for search and details endpoints.
These fixtures are used with respx to mock httpx calls in tests.
"""

# GET /search?q=Inception&type=movie
SIMKL_MOVIE_SEARCH_RESPONSE = [
    {
        "title": "Inception",
        "year": 2010,
        "type": "movie",
        "ids": {
            "simkl": 53536,
            "slug": "inception",
            "tmdb": "27205",
            "imdb": "tt1375666",
        },
    },
]

# GET /search?q=Attack on Titan&type=show
SIMKL_ANIME_SEARCH_RESPONSE = [
    {
        "title": "Attack on Titan",
        "year": 2013,
        "type": "anime",
        "ids": {
            "simkl_id": 39687,
            "tvdb": "267440",
            "mal": "16498",
            "tmdb": "",
        },
    },
]

# GET /shows/17465?extended=full
SIMKL_SHOW_DETAILS_RESPONSE = {
    "title": "Breaking Bad",
    "year": 2008,
    "ids": {
        "simkl": 17465,
        "tvdb": "81189",
        "tmdb": "1396",
        "imdb": "tt0903747",
    },
}
