from palma.domain.locations import find_city, find_village, get_cities, get_villages, resolve_location_name

class TestLocationDirectory:
    def test_twelve_cities(self):
        cities = get_cities()
        assert len(cities) == 12
        assert [c.id for c in cities] == list(range(1, 13))

    def test_village_ids_belong_to_their_city(self):
        for city in get_cities():
            for village in city.villages:
                assert village.id // 100 == city.id

    def test_get_villages_unknown_city(self):
        assert get_villages(99) == []
        assert get_villages(None) == []

    def test_find_village_returns_owner(self):
        city, village = find_village(102)
        assert city.id == 1
        assert village.name_en == "Al-Bireh"
        assert find_village(9999) is None

    def test_resolve_names(self):
        assert resolve_location_name(1, "city", "en") == "Ramallah"
        assert resolve_location_name(1, "city") == "رام الله"
        assert resolve_location_name(202, "village", "en") == "Rafidia"
        assert find_city(1).name("en") == "Ramallah"

    def test_resolve_unknown_is_empty(self):
        assert resolve_location_name(77, "city") == ""
        assert resolve_location_name(7777, "village", "en") == ""
        assert resolve_location_name(None, "village") == ""
