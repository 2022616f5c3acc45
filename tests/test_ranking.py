"""
Tests for the composite ranker.
"""

import math
import unittest
from unittest.mock import MagicMock

from CityRank.exceptions import InvalidParameterError, QueryRequiredError
from CityRank.models import City, Location, SearchFilters
from CityRank.services.ranking import CompositeRanker, ScoringWeights


def make_city(geoname_id, name, population=None, lat=0.0, lon=0.0, country='FR', state='11'):
    return City(
        geoname_id=geoname_id,
        city_name=name,
        country_code=country,
        state_code=state,
        state_name=None,
        latitude=lat,
        longitude=lon,
        population=population,
    )


class InMemoryCityRepository:
    """Candidate source with the same contract as CityRepository."""

    def __init__(self, cities):
        self.cities = list(cities)
        self.calls = []

    def find_candidates(self, query, filters=None, max_candidates=1000, prefilter='substring',
                        trigram_threshold=0.3):
        self.calls.append({'query': query, 'max_candidates': max_candidates})
        filters = filters or SearchFilters()
        matches = [
            city for city in self.cities
            if query.lower() in city.city_name.lower()
            and (filters.country_code is None or city.country_code == filters.country_code)
            and (filters.state_code is None or city.state_code == filters.state_code)
        ]
        matches.sort(key=lambda c: (c.population is None, -(c.population or 0), c.geoname_id))
        return matches[:max_candidates], len(matches)

    def get_max_population(self):
        populations = [c.population for c in self.cities if c.population]
        return max(populations) if populations else None


class FixedTextScorer:
    """Returns preset scores per city name."""

    def __init__(self, scores):
        self.scores = scores

    def score(self, candidate_name, query):
        return self.scores[candidate_name]


SPRINGFIELDS = [
    make_city(1000 + i, f"Springfield {i % 7}", population=[None, 500, 500, 12000, 80000][i % 5],
              lat=30 + i * 0.5, lon=-90 + i * 0.25)
    for i in range(60)
]


class TestRankerValidation(unittest.TestCase):

    def setUp(self):
        self.ranker = CompositeRanker(InMemoryCityRepository(SPRINGFIELDS))

    def test_query_required(self):
        for query in [None, "", "   "]:
            with self.assertRaises(QueryRequiredError):
                self.ranker.search(query)

    def test_invalid_offset_and_limit(self):
        for offset, limit in [(-1, 10), (0, 0), (0, -5), ("abc", 10), (0, "ten")]:
            with self.assertRaises(InvalidParameterError):
                self.ranker.search("spring", offset=offset, limit=limit)

    def test_string_parameters_are_parsed(self):
        page = self.ranker.search("spring", offset="5", limit="3")
        self.assertEqual((page.offset, page.limit), (5, 3))
        self.assertEqual(len(page.results), 3)

    def test_default_limit(self):
        page = self.ranker.search("spring")
        self.assertEqual(page.limit, 10)
        self.assertEqual(len(page.results), 10)

    def test_limit_capped_at_maximum(self):
        ranker = CompositeRanker(InMemoryCityRepository(SPRINGFIELDS), max_limit=25)
        page = ranker.search("spring", limit=500)
        self.assertEqual(page.limit, 25)
        self.assertEqual(len(page.results), 25)


class TestRankerOrdering(unittest.TestCase):

    def setUp(self):
        self.repository = InMemoryCityRepository(SPRINGFIELDS)
        self.ranker = CompositeRanker(self.repository)

    def ids(self, page):
        return [result.city.geoname_id for result in page.results]

    def test_pages_concatenate(self):
        full = self.ranker.search("spring", offset=0, limit=40)
        first = self.ranker.search("spring", offset=0, limit=20)
        second = self.ranker.search("spring", offset=20, limit=20)
        self.assertEqual(self.ids(first) + self.ids(second), self.ids(full))

    def test_pages_concatenate_with_location(self):
        location = Location(lat=40.0, lon=-85.0)
        full = self.ranker.search("spring", location=location, offset=0, limit=30)
        pages = [self.ranker.search("spring", location=location, offset=offset, limit=10)
                 for offset in (0, 10, 20)]
        self.assertEqual(sum((self.ids(page) for page in pages), []), self.ids(full))

    def test_ordering_is_stable(self):
        runs = [self.ids(self.ranker.search("spring", limit=50)) for _ in range(3)]
        self.assertEqual(runs[0], runs[1])
        self.assertEqual(runs[1], runs[2])

    def test_results_sorted_by_score(self):
        page = self.ranker.search("spring", limit=60)
        scores = [result.final_score for result in page.results]
        self.assertEqual(scores, sorted(scores, reverse=True))

    def test_ties_broken_by_population_then_id(self):
        cities = [
            make_city(3, "Twin", population=100),
            make_city(1, "Twin", population=100),
            make_city(2, "Twin", population=5000),
        ]
        ranker = CompositeRanker(InMemoryCityRepository(cities),
                                 weights=ScoringWeights(population=0.0, text=1.0, distance=0.0))
        self.assertEqual(self.ids(ranker.search("twin")), [2, 1, 3])

    def test_pagination_metadata(self):
        page = self.ranker.search("spring", offset=50, limit=10)
        self.assertEqual(page.total, 60)
        self.assertEqual(len(page.results), 10)
        self.assertFalse(page.has_more)
        self.assertEqual(page.pagination(), {'offset': 50, 'limit': 10, 'total': 60, 'hasMore': False})

        self.assertTrue(self.ranker.search("spring", offset=0, limit=10).has_more)

    def test_offset_past_end(self):
        page = self.ranker.search("spring", offset=100, limit=10)
        self.assertEqual(page.results, [])
        self.assertEqual(page.total, 60)
        self.assertFalse(page.has_more)

    def test_candidate_window_ignores_offset(self):
        repository = MagicMock()
        repository.find_candidates.return_value = ([], 0)
        ranker = CompositeRanker(repository)

        for offset, limit in [(0, 10), (900, 100), (3000, 100)]:
            ranker.search("x", offset=offset, limit=limit)
            self.assertEqual(repository.find_candidates.call_args.kwargs['max_candidates'], 5000)

    def test_pages_past_a_thousand_candidates(self):
        cities = [make_city(10_000 + i, f"Springfield {i}", population=1000) for i in range(1100)]
        cities.append(make_city(1, "Spring", population=900))
        ranker = CompositeRanker(InMemoryCityRepository(cities))

        served = []
        for offset in range(0, 700, 100):
            served.extend(self.ids(ranker.search("spring", offset=offset, limit=100)))

        self.assertEqual(len(served), 700)
        self.assertEqual(len(set(served)), 700)
        self.assertEqual(served[0], 1)

    def test_has_more_stops_at_ranked_window(self):
        ranker = CompositeRanker(InMemoryCityRepository(SPRINGFIELDS), candidate_window=20)

        self.assertTrue(ranker.search("spring", offset=0, limit=10).has_more)

        last = ranker.search("spring", offset=10, limit=10)
        self.assertEqual(len(last.results), 10)
        self.assertFalse(last.has_more)

        beyond = ranker.search("spring", offset=20, limit=10)
        self.assertEqual(beyond.results, [])
        self.assertEqual(beyond.total, 60)
        self.assertEqual(beyond.pagination()['hasMore'], False)

    def test_filters_are_forwarded(self):
        repository = MagicMock()
        repository.find_candidates.return_value = ([], 0)
        filters = SearchFilters.build("fr", "11")
        CompositeRanker(repository).search("x", filters=filters)
        self.assertEqual(repository.find_candidates.call_args.kwargs['filters'], filters)


class TestRankerScoring(unittest.TestCase):

    def test_prefix_beats_unrelated_city_of_similar_size(self):
        ranker = CompositeRanker(InMemoryCityRepository([]))
        paris = make_city(2988507, "Paris", population=2138551, lat=48.85341, lon=2.3488)
        hamburg = make_city(2911298, "Hamburg", population=1845229, lat=53.57532, lon=10.01534)

        paris_score = ranker.score(paris, "pari")
        self.assertEqual(paris_score.text_score, 0.95)
        self.assertGreater(paris_score.final_score, ranker.score(hamburg, "pari").final_score)

    def test_weighted_sum_without_location(self):
        ranker = CompositeRanker(InMemoryCityRepository([]), max_population=10_000_000)
        scored = ranker.score(make_city(1, "Lille", population=1000), "lille")

        self.assertEqual(scored.text_score, 1.0)
        self.assertAlmostEqual(scored.population_score, 3 / 7)
        self.assertEqual(scored.distance_score, 0.5)
        self.assertIsNone(scored.distance_km)
        self.assertAlmostEqual(scored.final_score, 0.2 * 3 / 7 + 0.7 * 1.0 + 0.1 * 0.5)

    def test_proximity_with_location(self):
        ranker = CompositeRanker(InMemoryCityRepository([]))
        here = Location(lat=50.6333, lon=3.0667)
        near = ranker.score(make_city(1, "Lille", lat=50.63297, lon=3.05858), "lille", here)
        far = ranker.score(make_city(2, "Lille", lat=-33.9, lon=18.4), "lille", here)

        self.assertGreater(near.distance_score, 0.99)
        self.assertEqual(far.distance_score, 0.0)
        self.assertGreater(near.final_score, far.final_score)
        self.assertLess(near.distance_km, 1.0)

    def test_non_finite_scores_become_zero(self):
        cities = [make_city(1, "Nan"), make_city(2, "Inf"), make_city(3, "Fine")]
        ranker = CompositeRanker(
            InMemoryCityRepository(cities),
            text_scorer=FixedTextScorer({"Nan": math.nan, "Inf": math.inf, "Fine": 0.3}),
        )
        scored = {result.city.city_name: result for result in ranker.search("n", limit=10).results}
        self.assertEqual(scored["Nan"].text_score, 0.0)
        self.assertEqual(scored["Inf"].text_score, 0.0)
        self.assertTrue(all(math.isfinite(result.final_score) for result in scored.values()))

    def test_dataset_maximum_population(self):
        repository = InMemoryCityRepository([make_city(1, "Big", population=1000),
                                             make_city(2, "Small", population=10)])
        ranker = CompositeRanker(repository, max_population=None)
        self.assertEqual(ranker.max_population, 1000)
        self.assertEqual(ranker.score(repository.cities[0], "big").population_score, 1.0)

    def test_to_dict(self):
        ranker = CompositeRanker(InMemoryCityRepository([]))
        location = Location(lat=50.0, lon=3.0)
        scored = ranker.score(make_city(7, "Lille", population=234475, lat=50.63, lon=3.06), "lil", location)

        row = scored.to_dict()
        self.assertEqual(row['geoname_id'], 7)
        self.assertEqual(row['score'], scored.final_score)
        self.assertNotIn('debug', row)

        debug = scored.to_dict(include_debug=True)['debug']
        self.assertEqual(debug['textMatchScore'], 0.95)
        self.assertEqual(debug['distance'], round(scored.distance_km, 2))
        self.assertEqual(debug['userLocation'], {'lat': 50.0, 'lon': 3.0})
        self.assertTrue(debug['useDistanceScoring'])


if __name__ == '__main__':
    unittest.main()
