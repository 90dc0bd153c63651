"""Static city/village directory used for shipping addresses.

Ids match the carrier's location ids: cities are numbered 1..12 and villages
are ``city_id * 100 + n``.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

@dataclass(frozen=True)
class Village:
    id: int
    name_ar: str
    name_en: str

@dataclass(frozen=True)
class City:
    id: int
    name_ar: str
    name_en: str
    region_id: int
    region_name: str
    villages: Tuple[Village, ...] = ()

    def name(self, lang: str = "ar") -> str:
        return self.name_ar if lang == "ar" else self.name_en

CITIES: Tuple[City, ...] = (
    City(
        1, "رام الله", "Ramallah", 1, "West Bank",
        villages=(
            Village(101, "مركز المدينة", "City Center"),
            Village(102, "البيرة", "Al-Bireh"),
            Village(103, "بيتونيا", "Bitunia"),
            Village(104, "بيرزيت", "Birzeit"),
            Village(105, "الطيرة", "Al-Tireh"),
            Village(106, "عين منجد", "Ein Munjed"),
            Village(107, "الماسيون", "Al-Masyoun"),
            Village(108, "بيتين", "Beitin"),
            Village(109, "سلواد", "Silwad"),
            Village(110, "نعلين", "Ni'lin"),
        ),
    ),
    City(
        2, "نابلس", "Nablus", 1, "West Bank",
        villages=(
            Village(201, "مركز المدينة", "City Center"),
            Village(202, "رفيديا", "Rafidia"),
            Village(203, "بلاطة", "Balata"),
            Village(204, "عسكر", "Askar"),
            Village(205, "عصيرة الشمالية", "Asira Ash-Shamaliya"),
            Village(206, "بيت ايبا", "Beit Iba"),
            Village(207, "حوارة", "Huwwara"),
            Village(208, "تل", "Tell"),
        ),
    ),
    City(
        3, "الخليل", "Hebron", 1, "West Bank",
        villages=(
            Village(301, "مركز المدينة", "City Center"),
            Village(302, "دورا", "Dura"),
            Village(303, "حلحول", "Halhul"),
            Village(304, "يطا", "Yatta"),
            Village(305, "الظاهرية", "Ad-Dhahiriya"),
            Village(306, "بني نعيم", "Bani Na'im"),
            Village(307, "إذنا", "Idhna"),
            Village(308, "ترقوميا", "Tarqumiya"),
        ),
    ),
    City(
        4, "جنين", "Jenin", 1, "West Bank",
        villages=(
            Village(401, "مركز المدينة", "City Center"),
            Village(402, "مخيم جنين", "Jenin Camp"),
            Village(403, "قباطية", "Qabatiya"),
            Village(404, "يعبد", "Ya'bad"),
            Village(405, "الزبابدة", "Zababdeh"),
            Village(406, "برقين", "Burqin"),
            Village(407, "اليامون", "Al-Yamun"),
        ),
    ),
    City(
        5, "طولكرم", "Tulkarm", 1, "West Bank",
        villages=(
            Village(501, "مركز المدينة", "City Center"),
            Village(502, "ضاحية شويكة", "Shuweika"),
            Village(503, "ضاحية ذنابة", "Dhanabba"),
            Village(504, "عنبتا", "Anabta"),
            Village(505, "دير الغصون", "Deir al-Ghusun"),
            Village(506, "بلعا", "Bala'a"),
            Village(507, "قفين", "Qaffin"),
        ),
    ),
    City(
        6, "بيت لحم", "Bethlehem", 1, "West Bank",
        villages=(
            Village(601, "مركز المدينة", "City Center"),
            Village(602, "بيت جالا", "Beit Jala"),
            Village(603, "بيت ساحور", "Beit Sahour"),
            Village(604, "الخضر", "Al-Khader"),
            Village(605, "الدوحة", "Ad-Doha"),
            Village(606, "تقوع", "Tuqu'"),
            Village(607, "بيت فجار", "Beit Fajjar"),
        ),
    ),
    City(
        7, "أريحا", "Jericho", 1, "West Bank",
        villages=(
            Village(701, "مركز المدينة", "City Center"),
            Village(702, "العوجا", "Al-Auja"),
            Village(703, "النويعمة", "An-Nuway'imah"),
            Village(704, "عقبة جبر", "Aqbat Jaber"),
        ),
    ),
    City(
        8, "قلقيلية", "Qalqilya", 1, "West Bank",
        villages=(
            Village(801, "مركز المدينة", "City Center"),
            Village(802, "عزون", "Azzun"),
            Village(803, "حبلة", "Habla"),
            Village(804, "كفر ثلث", "Kafr Thulth"),
            Village(805, "جيوس", "Jayyous"),
        ),
    ),
    City(
        9, "سلفيت", "Salfit", 1, "West Bank",
        villages=(
            Village(901, "مركز المدينة", "City Center"),
            Village(902, "بديا", "Biddya"),
            Village(903, "الزاوية", "Az-Zawiya"),
            Village(904, "بروقين", "Bruqin"),
            Village(905, "كفل حارس", "Kifl Haris"),
        ),
    ),
    City(
        10, "طوباس", "Tubas", 1, "West Bank",
        villages=(
            Village(1001, "مركز المدينة", "City Center"),
            Village(1002, "طمون", "Tammun"),
            Village(1003, "عقابا", "Aqqaba"),
            Village(1004, "تياسير", "Tayasir"),
        ),
    ),
    City(
        11, "القدس", "Jerusalem", 1, "West Bank",
        villages=(
            Village(1101, "القدس", "Jerusalem"),
            Village(1102, "شعفاط", "Shuafat"),
            Village(1103, "بيت حنينا", "Beit Hanina"),
            Village(1104, "الرام", "Al-Ram"),
            Village(1105, "كفر عقب", "Kafr Aqab"),
            Village(1106, "أبو ديس", "Abu Dis"),
            Village(1107, "العيزرية", "Al-Eizariya"),
        ),
    ),
    City(
        12, "غزة", "Gaza", 2, "Gaza Strip",
        villages=(
            Village(1201, "مدينة غزة", "Gaza City"),
            Village(1202, "رفح", "Rafah"),
            Village(1203, "خان يونس", "Khan Yunis"),
            Village(1204, "جباليا", "Jabalia"),
            Village(1205, "بيت لاهيا", "Beit Lahia"),
            Village(1206, "دير البلح", "Deir al-Balah"),
            Village(1207, "النصيرات", "Nuseirat"),
            Village(1208, "البريج", "Bureij"),
        ),
    ),
)

def get_cities() -> list[City]:
    return list(CITIES)

def find_city(city_id: Optional[int]) -> Optional[City]:
    return next((c for c in CITIES if c.id == city_id), None)

def get_villages(city_id: Optional[int]) -> list[Village]:
    city = find_city(city_id)
    return list(city.villages) if city else []

def find_village(village_id: Optional[int]) -> Optional[Tuple[City, Village]]:
    """Return the (city, village) pair owning ``village_id``."""
    for city in CITIES:
        for village in city.villages:
            if village.id == village_id:
                return city, village
    return None

def resolve_location_name(location_id: Optional[int], kind: str, lang: str = "ar") -> str:
    """Display name for a city or village id; empty string when unknown."""
    if kind == "city":
        city = find_city(location_id)
        return city.name(lang) if city else ""
    found = find_village(location_id)
    if not found:
        return ""
    village = found[1]
    return village.name_ar if lang == "ar" else village.name_en
