# matchmaking/utils.py

import math

# Rayon de la Terre en km
EARTH_RADIUS_KM = 6371


def calculate_distance(lat1, lon1, lat2, lon2):
    """Distance géodésique (formule de Haversine) en kilomètres"""
    if None in (lat1, lon1, lat2, lon2):
        return None

    # Conversion en radians
    lat1 = math.radians(lat1)
    lon1 = math.radians(lon1)
    lat2 = math.radians(lat2)
    lon2 = math.radians(lon2)

    # Différence de longitude et latitude
    dlon = lon2 - lon1
    dlat = lat2 - lat1

    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def rank_by_distance(origin, candidates, max_distance):
    """
    Trie les candidats par distance croissante et coupe au-delà de max_distance

    Sans coordonnées d'origine, aucun filtre ni tri géographique n'est
    appliqué. Avec coordonnées, les candidats sans position sont écartés.

    Returns:
        list: paires (candidat, distance en km ou None)
    """
    if origin.latitude is None or origin.longitude is None:
        return [(candidate, None) for candidate in candidates]

    ranked = []
    for candidate in candidates:
        distance = calculate_distance(
            origin.latitude, origin.longitude,
            candidate.latitude, candidate.longitude
        )
        if distance is not None and distance <= max_distance:
            ranked.append((candidate, distance))

    ranked.sort(key=lambda item: item[1])
    return ranked
