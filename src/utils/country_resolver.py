"""
Country Resolver Module - Free-form Country References to ISO Codes

Maps country names, ISO-3 codes, native names and common aliases to
ISO 3166-1 alpha-2 codes. The lookup table is embedded static data so the
result never depends on the platform's locale database.
"""

import logging
import unicodedata
from typing import Optional, List, Dict, Tuple

logger = logging.getLogger(__name__)


def normalize_name(name: str) -> str:
    """
    Normalize a country name for forgiving matching.

    Accents are stripped, letters and digits are lowercased and every run of
    other characters collapses into a single space.

    Args:
        name: Raw name, e.g. "Côte d'Ivoire"

    Returns:
        Normalized key, e.g. "cote d ivoire" (empty string if nothing is left)
    """
    if not name:
        return ''

    decomposed = unicodedata.normalize('NFD', name)
    chars = []
    last_was_space = False
    for ch in decomposed:
        if unicodedata.category(ch) == 'Mn':
            continue
        if ch.isalnum():
            chars.append(ch.lower())
            last_was_space = False
        elif not last_was_space:
            chars.append(' ')
            last_was_space = True

    return ''.join(chars).strip()


class CountryResolver:
    """
    Resolves free-form country references to ISO-2 (or literal ISO-3) codes.
    The resolver is purely linguistic: it never checks whether the code
    exists on a particular map.
    """

    def __init__(self):
        """Initialize the resolver with the embedded lookup tables."""
        self._build_mappings()

    def _build_mappings(self):
        """Build internal lookup dictionaries."""
        # ISO2 -> (ISO3, English name, [display / native names])
        self._countries: Dict[str, Tuple[str, str, List[str]]] = {
            # North America
            'US': ('USA', 'United States', ['United States of America', 'Estados Unidos']),
            'CA': ('CAN', 'Canada', []),
            'MX': ('MEX', 'Mexico', ['México', 'Estados Unidos Mexicanos']),
            'GL': ('GRL', 'Greenland', ['Kalaallit Nunaat', 'Grønland']),
            'PM': ('SPM', 'Saint Pierre and Miquelon', ['Saint-Pierre-et-Miquelon']),
            'BM': ('BMU', 'Bermuda', []),

            # Central America & Caribbean
            'GT': ('GTM', 'Guatemala', []),
            'BZ': ('BLZ', 'Belize', []),
            'SV': ('SLV', 'El Salvador', []),
            'HN': ('HND', 'Honduras', []),
            'NI': ('NIC', 'Nicaragua', []),
            'CR': ('CRI', 'Costa Rica', []),
            'PA': ('PAN', 'Panama', ['Panamá']),
            'CU': ('CUB', 'Cuba', []),
            'JM': ('JAM', 'Jamaica', []),
            'HT': ('HTI', 'Haiti', ['Haïti', 'Ayiti']),
            'DO': ('DOM', 'Dominican Republic', ['República Dominicana']),
            'PR': ('PRI', 'Puerto Rico', []),
            'BS': ('BHS', 'Bahamas', ['The Bahamas']),
            'TT': ('TTO', 'Trinidad and Tobago', []),
            'BB': ('BRB', 'Barbados', []),
            'AG': ('ATG', 'Antigua and Barbuda', []),
            'DM': ('DMA', 'Dominica', []),
            'GD': ('GRD', 'Grenada', []),
            'KN': ('KNA', 'Saint Kitts and Nevis', ['St Kitts and Nevis']),
            'LC': ('LCA', 'Saint Lucia', ['St Lucia']),
            'VC': ('VCT', 'Saint Vincent and the Grenadines', ['St Vincent and the Grenadines']),
            'AI': ('AIA', 'Anguilla', []),
            'AW': ('ABW', 'Aruba', []),
            'CW': ('CUW', 'Curaçao', []),
            'SX': ('SXM', 'Sint Maarten', []),
            'MF': ('MAF', 'Saint Martin', ['Saint-Martin']),
            'BL': ('BLM', 'Saint Barthélemy', []),
            'BQ': ('BES', 'Caribbean Netherlands', ['Bonaire, Sint Eustatius and Saba']),
            'KY': ('CYM', 'Cayman Islands', []),
            'TC': ('TCA', 'Turks and Caicos Islands', []),
            'VG': ('VGB', 'British Virgin Islands', []),
            'VI': ('VIR', 'U.S. Virgin Islands', ['United States Virgin Islands']),
            'MS': ('MSR', 'Montserrat', []),
            'GP': ('GLP', 'Guadeloupe', []),
            'MQ': ('MTQ', 'Martinique', []),

            # South America
            'BR': ('BRA', 'Brazil', ['Brasil']),
            'AR': ('ARG', 'Argentina', []),
            'CL': ('CHL', 'Chile', []),
            'CO': ('COL', 'Colombia', []),
            'PE': ('PER', 'Peru', ['Perú']),
            'VE': ('VEN', 'Venezuela', ['Bolivarian Republic of Venezuela']),
            'EC': ('ECU', 'Ecuador', []),
            'BO': ('BOL', 'Bolivia', ['Plurinational State of Bolivia']),
            'PY': ('PRY', 'Paraguay', []),
            'UY': ('URY', 'Uruguay', []),
            'GY': ('GUY', 'Guyana', []),
            'SR': ('SUR', 'Suriname', []),
            'GF': ('GUF', 'French Guiana', ['Guyane']),
            'FK': ('FLK', 'Falkland Islands', ['Falkland Islands (Islas Malvinas)']),
            'GS': ('SGS', 'South Georgia and the South Sandwich Islands', []),

            # Western & Northern Europe
            'GB': ('GBR', 'United Kingdom', ['United Kingdom of Great Britain and Northern Ireland']),
            'IE': ('IRL', 'Ireland', ['Éire']),
            'FR': ('FRA', 'France', []),
            'DE': ('DEU', 'Germany', ['Deutschland']),
            'NL': ('NLD', 'Netherlands', ['Nederland', 'The Netherlands']),
            'BE': ('BEL', 'Belgium', ['België', 'Belgique']),
            'LU': ('LUX', 'Luxembourg', ['Lëtzebuerg']),
            'CH': ('CHE', 'Switzerland', ['Schweiz', 'Suisse', 'Svizzera']),
            'AT': ('AUT', 'Austria', ['Österreich']),
            'LI': ('LIE', 'Liechtenstein', []),
            'MC': ('MCO', 'Monaco', []),
            'AD': ('AND', 'Andorra', []),
            'ES': ('ESP', 'Spain', ['España']),
            'PT': ('PRT', 'Portugal', []),
            'IT': ('ITA', 'Italy', ['Italia']),
            'SM': ('SMR', 'San Marino', []),
            'VA': ('VAT', 'Vatican City', ['Città del Vaticano']),
            'MT': ('MLT', 'Malta', []),
            'GI': ('GIB', 'Gibraltar', []),
            'DK': ('DNK', 'Denmark', ['Danmark']),
            'NO': ('NOR', 'Norway', ['Norge', 'Noreg']),
            'SE': ('SWE', 'Sweden', ['Sverige']),
            'FI': ('FIN', 'Finland', ['Suomi']),
            'IS': ('ISL', 'Iceland', ['Ísland']),
            'FO': ('FRO', 'Faroe Islands', ['Føroyar']),
            'AX': ('ALA', 'Åland Islands', []),
            'SJ': ('SJM', 'Svalbard and Jan Mayen', []),
            'IM': ('IMN', 'Isle of Man', []),
            'JE': ('JEY', 'Jersey', []),
            'GG': ('GGY', 'Guernsey', []),

            # Central & Eastern Europe
            'PL': ('POL', 'Poland', ['Polska']),
            'CZ': ('CZE', 'Czechia', ['Česko']),
            'SK': ('SVK', 'Slovakia', ['Slovensko']),
            'HU': ('HUN', 'Hungary', ['Magyarország']),
            'SI': ('SVN', 'Slovenia', ['Slovenija']),
            'HR': ('HRV', 'Croatia', ['Hrvatska']),
            'BA': ('BIH', 'Bosnia and Herzegovina', ['Bosna i Hercegovina']),
            'RS': ('SRB', 'Serbia', ['Srbija', 'Србија']),
            'ME': ('MNE', 'Montenegro', ['Crna Gora']),
            'MK': ('MKD', 'North Macedonia', ['Северна Македонија']),
            'AL': ('ALB', 'Albania', ['Shqipëria']),
            'GR': ('GRC', 'Greece', ['Ελλάδα', 'Hellas']),
            'BG': ('BGR', 'Bulgaria', ['България']),
            'RO': ('ROU', 'Romania', ['România']),
            'MD': ('MDA', 'Moldova', ['Republic of Moldova']),
            'UA': ('UKR', 'Ukraine', ['Україна']),
            'BY': ('BLR', 'Belarus', ['Беларусь']),
            'LT': ('LTU', 'Lithuania', ['Lietuva']),
            'LV': ('LVA', 'Latvia', ['Latvija']),
            'EE': ('EST', 'Estonia', ['Eesti']),
            'RU': ('RUS', 'Russia', ['Russian Federation', 'Россия']),
            'CY': ('CYP', 'Cyprus', ['Κύπρος']),
            'TR': ('TUR', 'Turkey', ['Türkiye']),

            # Caucasus & Central Asia
            'GE': ('GEO', 'Georgia', ['საქართველო']),
            'AM': ('ARM', 'Armenia', ['Հայաստան']),
            'AZ': ('AZE', 'Azerbaijan', ['Azərbaycan']),
            'KZ': ('KAZ', 'Kazakhstan', ['Қазақстан']),
            'UZ': ('UZB', 'Uzbekistan', ['Oʻzbekiston']),
            'TM': ('TKM', 'Turkmenistan', ['Türkmenistan']),
            'KG': ('KGZ', 'Kyrgyzstan', ['Kyrgyz Republic']),
            'TJ': ('TJK', 'Tajikistan', ['Тоҷикистон']),

            # Middle East
            'IL': ('ISR', 'Israel', ['ישראל']),
            'PS': ('PSE', 'Palestinian Territories', ['State of Palestine']),
            'JO': ('JOR', 'Jordan', ['الأردن']),
            'LB': ('LBN', 'Lebanon', ['لبنان']),
            'SY': ('SYR', 'Syria', ['Syrian Arab Republic', 'سوريا']),
            'IQ': ('IRQ', 'Iraq', ['العراق']),
            'IR': ('IRN', 'Iran', ['Islamic Republic of Iran', 'ایران']),
            'SA': ('SAU', 'Saudi Arabia', ['السعودية']),
            'YE': ('YEM', 'Yemen', ['اليمن']),
            'OM': ('OMN', 'Oman', ['عُمان']),
            'AE': ('ARE', 'United Arab Emirates', ['الإمارات']),
            'QA': ('QAT', 'Qatar', ['قطر']),
            'BH': ('BHR', 'Bahrain', ['البحرين']),
            'KW': ('KWT', 'Kuwait', ['الكويت']),

            # South Asia
            'AF': ('AFG', 'Afghanistan', ['افغانستان']),
            'PK': ('PAK', 'Pakistan', ['پاکستان']),
            'IN': ('IND', 'India', ['भारत', 'Bharat']),
            'NP': ('NPL', 'Nepal', ['नेपाल']),
            'BT': ('BTN', 'Bhutan', []),
            'BD': ('BGD', 'Bangladesh', ['বাংলাদেশ']),
            'LK': ('LKA', 'Sri Lanka', []),
            'MV': ('MDV', 'Maldives', []),
            'IO': ('IOT', 'British Indian Ocean Territory', []),

            # East Asia
            'CN': ('CHN', 'China', ["People's Republic of China", '中国']),
            'TW': ('TWN', 'Taiwan', ['臺灣', '台灣']),
            'HK': ('HKG', 'Hong Kong', ['Hong Kong SAR China', '香港']),
            'MO': ('MAC', 'Macao', ['Macao SAR China', '澳門']),
            'JP': ('JPN', 'Japan', ['日本', 'Nihon', 'Nippon']),
            'KR': ('KOR', 'South Korea', ['Republic of Korea', '대한민국']),
            'KP': ('PRK', 'North Korea', ["Democratic People's Republic of Korea", '조선']),
            'MN': ('MNG', 'Mongolia', ['Монгол Улс']),

            # Southeast Asia
            'VN': ('VNM', 'Vietnam', ['Việt Nam', 'Viet Nam']),
            'LA': ('LAO', 'Laos', ["Lao People's Democratic Republic", 'ລາວ']),
            'KH': ('KHM', 'Cambodia', ['កម្ពុជា']),
            'TH': ('THA', 'Thailand', ['ประเทศไทย']),
            'MM': ('MMR', 'Myanmar (Burma)', ['Myanmar', 'မြန်မာ']),
            'MY': ('MYS', 'Malaysia', []),
            'SG': ('SGP', 'Singapore', ['Singapura', '新加坡']),
            'ID': ('IDN', 'Indonesia', []),
            'BN': ('BRN', 'Brunei', ['Brunei Darussalam']),
            'PH': ('PHL', 'Philippines', ['Pilipinas']),
            'TL': ('TLS', 'Timor-Leste', ['East Timor']),

            # Oceania
            'AU': ('AUS', 'Australia', []),
            'NZ': ('NZL', 'New Zealand', ['Aotearoa']),
            'PG': ('PNG', 'Papua New Guinea', ['Papua Niugini']),
            'FJ': ('FJI', 'Fiji', []),
            'SB': ('SLB', 'Solomon Islands', []),
            'VU': ('VUT', 'Vanuatu', []),
            'NC': ('NCL', 'New Caledonia', ['Nouvelle-Calédonie']),
            'PF': ('PYF', 'French Polynesia', ['Polynésie française']),
            'WS': ('WSM', 'Samoa', []),
            'AS': ('ASM', 'American Samoa', []),
            'TO': ('TON', 'Tonga', []),
            'KI': ('KIR', 'Kiribati', []),
            'TV': ('TUV', 'Tuvalu', []),
            'NR': ('NRU', 'Nauru', []),
            'FM': ('FSM', 'Micronesia', ['Federated States of Micronesia']),
            'MH': ('MHL', 'Marshall Islands', []),
            'PW': ('PLW', 'Palau', []),
            'GU': ('GUM', 'Guam', []),
            'MP': ('MNP', 'Northern Mariana Islands', []),
            'CK': ('COK', 'Cook Islands', []),
            'NU': ('NIU', 'Niue', []),
            'TK': ('TKL', 'Tokelau', []),
            'WF': ('WLF', 'Wallis and Futuna', []),
            'PN': ('PCN', 'Pitcairn Islands', []),
            'NF': ('NFK', 'Norfolk Island', []),
            'CX': ('CXR', 'Christmas Island', []),
            'CC': ('CCK', 'Cocos (Keeling) Islands', []),
            'UM': ('UMI', 'U.S. Outlying Islands', ['United States Minor Outlying Islands']),
            'HM': ('HMD', 'Heard and McDonald Islands', []),

            # North Africa
            'EG': ('EGY', 'Egypt', ['مصر']),
            'LY': ('LBY', 'Libya', ['ليبيا']),
            'TN': ('TUN', 'Tunisia', ['تونس']),
            'DZ': ('DZA', 'Algeria', ['الجزائر']),
            'MA': ('MAR', 'Morocco', ['المغرب', 'Maroc']),
            'EH': ('ESH', 'Western Sahara', []),
            'SD': ('SDN', 'Sudan', ['السودان']),
            'SS': ('SSD', 'South Sudan', []),

            # West Africa
            'MR': ('MRT', 'Mauritania', ['Mauritanie']),
            'ML': ('MLI', 'Mali', []),
            'NE': ('NER', 'Niger', []),
            'SN': ('SEN', 'Senegal', ['Sénégal']),
            'GM': ('GMB', 'Gambia', ['The Gambia']),
            'GW': ('GNB', 'Guinea-Bissau', ['Guiné-Bissau']),
            'GN': ('GIN', 'Guinea', ['Guinée']),
            'SL': ('SLE', 'Sierra Leone', []),
            'LR': ('LBR', 'Liberia', []),
            'CI': ('CIV', "Côte d'Ivoire", []),
            'BF': ('BFA', 'Burkina Faso', []),
            'GH': ('GHA', 'Ghana', []),
            'TG': ('TGO', 'Togo', []),
            'BJ': ('BEN', 'Benin', ['Bénin']),
            'NG': ('NGA', 'Nigeria', []),
            'CV': ('CPV', 'Cabo Verde', []),
            'SH': ('SHN', 'Saint Helena', ['St Helena']),

            # Central Africa
            'TD': ('TCD', 'Chad', ['Tchad']),
            'CM': ('CMR', 'Cameroon', ['Cameroun']),
            'CF': ('CAF', 'Central African Republic', ['République centrafricaine']),
            'GQ': ('GNQ', 'Equatorial Guinea', ['Guinea Ecuatorial']),
            'GA': ('GAB', 'Gabon', []),
            'CG': ('COG', 'Congo - Brazzaville', ['Congo']),
            'CD': ('COD', 'Congo - Kinshasa', ['Democratic Republic of Congo']),
            'ST': ('STP', 'São Tomé and Príncipe', []),
            'AO': ('AGO', 'Angola', []),

            # East Africa
            'ET': ('ETH', 'Ethiopia', ['ኢትዮጵያ']),
            'ER': ('ERI', 'Eritrea', []),
            'DJ': ('DJI', 'Djibouti', []),
            'SO': ('SOM', 'Somalia', ['Soomaaliya']),
            'KE': ('KEN', 'Kenya', []),
            'UG': ('UGA', 'Uganda', []),
            'RW': ('RWA', 'Rwanda', []),
            'BI': ('BDI', 'Burundi', []),
            'TZ': ('TZA', 'Tanzania', ['United Republic of Tanzania']),
            'SC': ('SYC', 'Seychelles', []),
            'KM': ('COM', 'Comoros', ['Comores']),
            'MG': ('MDG', 'Madagascar', ['Madagasikara']),
            'MU': ('MUS', 'Mauritius', ['Maurice']),
            'RE': ('REU', 'Réunion', []),
            'YT': ('MYT', 'Mayotte', []),
            'TF': ('ATF', 'French Southern Territories', []),

            # Southern Africa
            'ZA': ('ZAF', 'South Africa', []),
            'NA': ('NAM', 'Namibia', []),
            'BW': ('BWA', 'Botswana', []),
            'ZW': ('ZWE', 'Zimbabwe', []),
            'ZM': ('ZMB', 'Zambia', []),
            'MW': ('MWI', 'Malawi', []),
            'MZ': ('MOZ', 'Mozambique', ['Moçambique']),
            'LS': ('LSO', 'Lesotho', []),
            'SZ': ('SWZ', 'Eswatini', []),

            # Polar & uninhabited
            'AQ': ('ATA', 'Antarctica', []),
            'BV': ('BVT', 'Bouvet Island', []),
        }

        # Colloquial / political names that the territory table does not carry
        self._aliases: Dict[str, str] = {
            'united states of america': 'US',
            'usa': 'US',
            'america': 'US',
            'uk': 'GB',
            'great britain': 'GB',
            'britain': 'GB',
            'england': 'GB',
            'russia': 'RU',
            'south korea': 'KR',
            'korea south': 'KR',
            'north korea': 'KP',
            'korea north': 'KP',
            'iran': 'IR',
            'syria': 'SY',
            'vietnam': 'VN',
            'laos': 'LA',
            'bolivia': 'BO',
            'tanzania': 'TZ',
            'venezuela': 'VE',
            'moldova': 'MD',
            'czech republic': 'CZ',
            'czechia': 'CZ',
            'cape verde': 'CV',
            'eswatini': 'SZ',
            'swaziland': 'SZ',
            'myanmar': 'MM',
            'burma': 'MM',
            'brunei': 'BN',
            'ivory coast': 'CI',
            'cote divoire': 'CI',
            'cote d ivoire': 'CI',
            'democratic republic of the congo': 'CD',
            'dr congo': 'CD',
            'drc': 'CD',
            'zaire': 'CD',
            'republic of the congo': 'CG',
            'congo republic': 'CG',
            'congo brazzaville': 'CG',
            'micronesia': 'FM',
            'palestine': 'PS',
            'west bank': 'PS',
            'gaza': 'PS',
            'kosovo': 'XK',
            'vatican city': 'VA',
            'vatican': 'VA',
            'holy see': 'VA',
            'macedonia': 'MK',
            'fyrom': 'MK',
            'turkiye': 'TR',
            'east timor': 'TL',
            'timor leste': 'TL',
            'the gambia': 'GM',
            'the bahamas': 'BS',
            'uae': 'AE',
            'emirates': 'AE',
            'holland': 'NL',
            'persia': 'IR',
            'ceylon': 'LK',
            'siam': 'TH',
            'kampuchea': 'KH',
            'upper volta': 'BF',
            'dahomey': 'BJ',
            'rhodesia': 'ZW',
            'bechuanaland': 'BW',
            'abyssinia': 'ET',
            'formosa': 'TW',
            'republic of china': 'TW',
            'northern cyprus': 'CY',
            'somaliland': 'SO',
            'transnistria': 'MD',
            'abkhazia': 'GE',
            'south ossetia': 'GE',
            'western sahara': 'EH',
            'sahrawi republic': 'EH',
            'falklands': 'FK',
            'malvinas': 'FK',
            'sao tome': 'ST',
            'st lucia': 'LC',
            'st kitts': 'KN',
            'st vincent': 'VC',
            'curacao': 'CW',
            'reunion': 'RE',
        }

        # Normalized name -> ISO2 (first registration wins)
        self._name_to_iso2: Dict[str, str] = {}

        for iso2, (iso3, name, others) in self._countries.items():
            self._add(name, iso2)
            for other in others:
                self._add(other, iso2)
            self._add(iso3, iso2)

        for alias, iso2 in self._aliases.items():
            self._add(alias, iso2)

        logger.debug(f"Country resolver built {len(self._name_to_iso2)} name keys "
                     f"for {len(self._countries)} territories")

    def _add(self, name: str, iso2: str):
        key = normalize_name(name)
        if key and key not in self._name_to_iso2:
            self._name_to_iso2[key] = iso2

    def resolve(self, reference: Optional[str]) -> Optional[str]:
        """
        Resolve a country reference to an ISO-2 code, or a literal ISO-3
        candidate when nothing else matches.

        Args:
            reference: Code or name, e.g. "UK", "gb", "Deutschland", "FRA"

        Returns:
            Uppercase code candidate, or None if unresolvable
        """
        if not reference or not reference.strip():
            return None

        trimmed = reference.strip()

        # Two letters: aliases like "UK" first, then the literal code
        if len(trimmed) == 2 and trimmed.isalpha():
            iso2 = self._name_to_iso2.get(normalize_name(trimmed))
            return iso2 or trimmed.upper()

        key = normalize_name(trimmed)
        if not key:
            return None

        iso2 = self._name_to_iso2.get(key)
        if iso2:
            return iso2

        if len(trimmed) == 3 and trimmed.isalpha():
            return trimmed.upper()

        return None

    def get_name(self, iso2: str) -> Optional[str]:
        """Get the English name for an ISO-2 code."""
        data = self._countries.get((iso2 or '').strip().upper())
        return data[1] if data else None

    def get_iso3(self, iso2: str) -> Optional[str]:
        """Get the ISO-3 code for an ISO-2 code."""
        data = self._countries.get((iso2 or '').strip().upper())
        return data[0] if data else None


# Global instance for convenience
_resolver = None

def get_resolver() -> CountryResolver:
    """Get or create global CountryResolver instance."""
    global _resolver
    if _resolver is None:
        _resolver = CountryResolver()
    return _resolver


def resolve_to_iso2_or_iso3(reference: Optional[str]) -> Optional[str]:
    """Convenience function to resolve a country reference."""
    return get_resolver().resolve(reference)
