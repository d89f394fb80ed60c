"""Main lane positions per champion id (Data Dragon ids)."""

from typing import Dict, List

from src.champion_data.config import POSITIONS

CHAMPION_POSITIONS: Dict[str, List[str]] = {
    # Top
    "Aatrox": ["top"],
    "Darius": ["top"],
    "Fiora": ["top"],
    "Garen": ["top"],
    "Irelia": ["top", "mid"],
    "Jax": ["top"],
    "Kennen": ["top"],
    "Malphite": ["top"],
    "Mordekaiser": ["top"],
    "Nasus": ["top"],
    "Ornn": ["top"],
    "Renekton": ["top"],
    "Riven": ["top"],
    "Sett": ["top"],
    "Shen": ["top"],
    "Singed": ["top"],
    "Sion": ["top"],
    "Teemo": ["top"],
    "Tryndamere": ["top"],
    "Urgot": ["top"],
    "Volibear": ["top", "jungle"],
    "Yorick": ["top"],
    # Jungle
    "Amumu": ["jungle"],
    "Diana": ["jungle", "mid"],
    "Ekko": ["jungle", "mid"],
    "Elise": ["jungle"],
    "Evelynn": ["jungle"],
    "Fiddlesticks": ["jungle"],
    "Graves": ["jungle"],
    "Hecarim": ["jungle"],
    "JarvanIV": ["jungle"],
    "Karthus": ["jungle"],
    "Kayn": ["jungle"],
    "Khazix": ["jungle"],
    "Kindred": ["jungle"],
    "LeeSin": ["jungle"],
    "Lillia": ["jungle"],
    "MasterYi": ["jungle"],
    "Nidalee": ["jungle"],
    "Nocturne": ["jungle"],
    "Nunu": ["jungle"],
    "Olaf": ["jungle"],
    "Rammus": ["jungle"],
    "RekSai": ["jungle"],
    "Rengar": ["jungle"],
    "Sejuani": ["jungle"],
    "Shaco": ["jungle"],
    "Shyvana": ["jungle"],
    "Skarner": ["jungle"],
    "Taliyah": ["jungle", "mid"],
    "Trundle": ["jungle"],
    "Udyr": ["jungle"],
    "Vi": ["jungle"],
    "Viego": ["jungle"],
    "Warwick": ["jungle"],
    "XinZhao": ["jungle"],
    "Zac": ["jungle"],
    # Mid
    "Ahri": ["mid"],
    "Akali": ["mid"],
    "Anivia": ["mid"],
    "Annie": ["mid"],
    "AurelionSol": ["mid"],
    "Azir": ["mid"],
    "Cassiopeia": ["mid"],
    "Corki": ["mid"],
    "Fizz": ["mid"],
    "Galio": ["mid"],
    "Kassadin": ["mid"],
    "Katarina": ["mid"],
    "Leblanc": ["mid"],
    "Lissandra": ["mid"],
    "Lux": ["mid", "support"],
    "Malzahar": ["mid"],
    "Neeko": ["mid"],
    "Orianna": ["mid"],
    "Qiyana": ["mid"],
    "Ryze": ["mid"],
    "Sylas": ["mid"],
    "Syndra": ["mid"],
    "Talon": ["mid"],
    "TwistedFate": ["mid"],
    "Veigar": ["mid"],
    "Vex": ["mid"],
    "Viktor": ["mid"],
    "Vladimir": ["mid"],
    "Xerath": ["mid"],
    "Yasuo": ["mid"],
    "Yone": ["mid"],
    "Zed": ["mid"],
    "Ziggs": ["mid"],
    "Zoe": ["mid"],
    # Bot
    "Aphelios": ["adc"],
    "Ashe": ["adc"],
    "Caitlyn": ["adc"],
    "Draven": ["adc"],
    "Ezreal": ["adc"],
    "Jhin": ["adc"],
    "Jinx": ["adc"],
    "Kaisa": ["adc"],
    "Kalista": ["adc"],
    "KogMaw": ["adc"],
    "Lucian": ["adc"],
    "MissFortune": ["adc"],
    "Samira": ["adc"],
    "Sivir": ["adc"],
    "Tristana": ["adc"],
    "Twitch": ["adc"],
    "Varus": ["adc"],
    "Vayne": ["adc"],
    "Xayah": ["adc"],
    "Zeri": ["adc"],
    # Support
    "Alistar": ["support"],
    "Bard": ["support"],
    "Blitzcrank": ["support"],
    "Brand": ["support"],
    "Braum": ["support"],
    "Janna": ["support"],
    "Karma": ["support"],
    "Leona": ["support"],
    "Lulu": ["support"],
    "Morgana": ["support"],
    "Nami": ["support"],
    "Nautilus": ["support"],
    "Pyke": ["support"],
    "Rakan": ["support"],
    "Senna": ["support"],
    "Seraphine": ["support"],
    "Sona": ["support"],
    "Soraka": ["support"],
    "Swain": ["support"],
    "Taric": ["support"],
    "Thresh": ["support"],
    "Yuumi": ["support"],
    "Zilean": ["support"],
    "Zyra": ["support"],
}


def get_all_positions() -> List[str]:
    return list(POSITIONS)


def get_champion_positions(champion_id: str) -> List[str]:
    """Main positions for a champion (empty list when unknown)."""
    return list(CHAMPION_POSITIONS.get(champion_id, []))


def can_play_position(champion_id: str, position: str) -> bool:
    return position in CHAMPION_POSITIONS.get(champion_id, [])
