"""
# Matching Example

An example of using the MatchingEngine to find stored routes that ride like a newly recorded one
"""


def main():
    from pathlib import Path

    """
    First, we load the stored routes.
    The route store exports its routes as a JSON list, and the test suite ships a small sample of routes around Berlin that we can use for demonstration:
    """

    from curvematch.index.strtree_index import STRtreeRouteIndex

    routes_file = Path(__file__).parents[2] / "tests" / "test_assets" / "berlin_routes.json"

    route_index = STRtreeRouteIndex.from_file(routes_file)

    print(route_index)

    """
    Notice that the sample file holds five routes but only three of them are indexed.
    Routes with fewer than 2 points or without a geometry are skipped with a warning rather than failing the whole load.

    The index bulk loads the bounding box of every route into an STRtree, so we can ask which routes pass through an area:
    """

    candidates = route_index.query(13.30, 52.48, 13.48, 52.56)

    for c in candidates:
        print(f"{c.id}: {c.name} ({c.distance:.0f} m)")

    """
    Next, we build the route we want to match.
    We expect the input data to be in the EPSG:4326 coordinate reference system, ordered along the track and with the elevation samples aligned to the points.
    A route can be built from a list of (longitude, latitude) pairs or from a dataframe:
    """

    import pandas as pd

    from curvematch.constructs.route import Route

    df = pd.DataFrame(
        {
            "latitude": [52.5200, 52.5215, 52.5230, 52.5240, 52.5250],
            "longitude": [13.4050, 13.4075, 13.4100, 13.4125, 13.4150],
            "elevation": [100.0, 103.0, 105.0, 109.0, 110.0],
        }
    )

    route = Route.from_dataframe(df, name="evening loop").validate()

    print(route)

    """
    Now, we're ready to match.
    The matching engine filters the candidates by search area and by distance and then scores each one on its elevation profile, its shape and its turns.
    How much each of those counts, and how strict the filters are, is set with a MatchingConfig:
    """

    from curvematch.constructs.match_config import MatchingConfig
    from curvematch.matchers.engine import MatchingEngine

    engine = MatchingEngine(route_index)

    config = MatchingConfig(
        distance_flexibility_pct=1000,
        granularity_meters=300,
        min_match_percentage=20,
    )

    results = engine.find_matches(route, (13.30, 52.40, 13.70, 52.56), config)

    for r in results:
        print(f"{r.name}: {r.match_percentage:.1f}% ({r.gain_per_km:.1f} m/km)")

    """
    The sample routes are much longer than our short loop, so we pass a very generous distance flexibility here.
    With the default of 10% only routes within 10% of the input length would be considered.

    Dynamic Time Warping can be added to the score to compare elevation profiles that were sampled at different rates:
    """

    dtw_config = MatchingConfig(
        distance_flexibility_pct=1000,
        granularity_meters=300,
        min_match_percentage=20,
        dtw_importance=1.0,
        dtw_window_size=5,
    )

    dtw_results = engine.find_matches(route, (13.30, 52.40, 13.70, 52.56), dtw_config)

    """
    Lastly, we might want to convert the results into a format more suitable for saving to file or for sending back to a client.
    To do this, we can convert the results into a dataframe, a GeoDataFrame of route lines, or camelCase dictionaries:
    """

    from curvematch.matchers.match_result import (
        results_to_dataframe,
        results_to_dicts,
        results_to_geodataframe,
    )

    result_df = results_to_dataframe(dtw_results)
    result_df.head()

    result_gdf = results_to_geodataframe(dtw_results, limit=2)
    result_gdf.plot()

    payload = results_to_dicts(dtw_results)
    print(payload[:1])


if __name__ == "__main__":
    main()
