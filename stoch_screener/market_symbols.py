"""
Indonesia Stock Exchange (IDX) ticker universe, grouped by sector.
Used by the market scan and the sector commands of the CLI.

Note: the lists should be refreshed when the exchange adds or delists
companies (a few times a year). Tickers are plain IDX codes without the
".JK" suffix.
"""

from .exceptions import ValidationError

IDX_SECTORS: dict[str, list[str]] = {
    "Finance": [
        "BBCA", "BBNI", "BRIS", "BNGA", "NISP", "BINA", "ARTO", "BDMN", "BTPN", "BSIM",
        "BBTN", "BNII", "BBKP", "BMAS", "BTPS", "BBMD", "BJBR", "BJTM", "AGRO", "BBYB",
        "NOBU", "BWSD", "BCIC", "MCOR", "BGTG", "BKSW", "PNBS", "DNAR", "BBRI", "BMRI",
        "BNLI", "MEGA", "BBHI", "PNBN", "BBSI", "BANK", "MAYA", "MASB", "AMAR", "SDRA",
        "AGRS", "INPC", "BACA", "BABP", "BCAP", "BNBA", "BVIC", "BEKS", "INDO", "MPRO",
        "RISE", "TBIG", "CBDK", "MKPI", "BKSL", "BSDE", "PWON", "CTRA", "KPIG", "JRPT",
        "DUTI", "DMAS", "SMRA", "LPKR", "SMDM", "MMLP", "KIJA", "UANG", "MTLA", "ASRI",
        "RDTX", "LPCK", "NIRO", "FMII", "APLN", "GMTD", "BSBK", "JIHD", "DILD", "ADCP",
        "TRIN", "GWSA", "ROCK", "ELTY", "TRUE", "GRIA", "ASPI", "MDLN", "CITY", "HOMI",
        "AMAN", "DADA", "SWID", "VAST", "URBN", "NASA", "PUDP", "REAL", "JGLE", "BKDP",
        "SATU", "KBAG", "IPAC", "EMDE", "CBPE", "KOTA", "TARA", "SAGE", "PURI", "CSIS",
        "NZIA", "RELF", "BIPP", "PAMG", "BCIP", "BAPI", "ATAP", "KOCI", "HBAT", "WINR",
        "MSIE", "SMMA", "AMAG", "ABDA", "GSMF", "MREI", "ASRM", "VINS", "ASBI", "CASA",
        "LIFE", "ASMI", "JMAS", "TOWR", "BFIN", "ADMF", "SMIL", "SKRN", "IMJS", "TIFA",
        "BBLD", "FUJI", "CFIN", "WOMF", "HDFA", "BPFI", "VRNA", "GOLD", "TRUS", "BPTR",
        "TRJA", "MGNA", "DEFI", "POLA", "WIDI", "IBFN", "MENN", "APIC", "YULE", "VICO",
        "RELI", "PANS", "PADI", "PEGE", "KREN", "SRTG", "NICK", "MTFN", "AKSI", "TRIM",
        "SFAN", "AMOR", "STAR", "LPPS", "TUGU", "LPGI", "MTWI", "AHAP", "ASDM", "ASJT",
        "YOII",
    ],
    "Energy Minerals": [
        "DSSA", "BYAN", "UNTR", "AADI", "GEMS", "ADMR", "BUMI", "ADRO", "PTBA", "ITMG",
        "HRUM", "INDY", "MCOL", "BSSR", "TOBA", "DWGL", "ABMM", "DEWA", "BIPI", "SMMT",
        "MYOH", "DOID", "MAHA", "MBAP", "KKGI", "ITMA", "ARII", "CNKO", "GTBO", "COAL",
        "RMKO", "FIRE", "MEDC", "ENRG", "ELSA", "SUNI", "SICO", "ESSA", "SURE",
    ],
    "Non-Energy Minerals": [
        "AMMN", "BRMS", "ANTM", "EMAS", "MDKA", "ARCI", "PSAB", "NICL", "HILL", "OKAS",
        "MINE", "CUAN", "NCKL", "MBMA", "INCO", "TINS", "SGER", "DKFT", "NICE", "MARK",
        "IFSH", "BRPT", "DSNG", "IFII", "SULI", "FWCT", "INTP", "SMGR", "CMNT", "SMBR",
        "WSBP", "BLES", "CTTH", "PIPA", "BATR", "KRAS", "ISSP", "GGRP", "GDST", "ZINC",
        "BAJA", "BTON", "ALKA", "INAI",
    ],
    "Utilities": [
        "BREN", "CDIA", "POWR", "KEEN", "HGII", "LAPD", "MPOW", "PGAS", "RAJA", "INPS",
        "CGAS", "PGEO",
    ],
    "Technology Services": [
        "DCII", "MLPT", "ASII", "GOTO", "WIFI", "EDGE", "CYBR", "MSTI", "ASGR", "IRSX",
        "AREA", "CHIP", "NFCX", "ATIC", "LPLI", "PGJO", "AWAN", "GPSO", "MCAS", "VTNY",
        "TFAS", "ELIT", "JATI", "TOSK", "DIVA", "WGSH", "TRON", "CASH", "UVCR", "RUNS",
        "EPAC", "INDX", "DIGI", "TRGU", "TRST", "ALDO", "PDPP", "SPMA", "FPNI", "INRU",
        "NIKL", "SPID", "BUDI", "MOLI", "IPOL", "BTEK", "KDSI", "HOKI", "AYAM", "PBRX",
        "BRNA", "APLI", "EKAD", "SMKL", "TALF", "ADMG", "IGAR", "MDKI", "WMUU", "CLPI",
        "ASHA", "AKPI", "SSTM", "YPAS", "ESTI", "ERTX", "ANDI", "OBMD", "NPGF", "INOV",
        "AYLS", "PSDN", "CHEM", "PICO", "INCI", "FLMC", "SBMA", "DPNS", "OILS", "POLY",
        "AMMS", "PTPS", "GULA", "ACRO", "LMAX",
    ],
    "Process Industries": [
        "TPIA", "PGUN", "CPIN", "JARR", "INKP", "TAPG", "JPFA", "AVIA", "TKIM", "STAA",
        "SSMS", "AALI", "SMAR", "NSSS", "TLDN", "LSIP", "SGRO", "ANJT", "PALM", "AGII",
        "BWPT", "TBLA", "UDNG", "PACK", "PBID", "CPRO", "SAMF", "ARGO", "PNGO", "MGRO",
        "BISI", "JAWA", "TFCO", "BRAM", "MLIA", "DGWG", "GZCO", "CSRA", "INDR", "MSJA",
        "MAIN", "AMFG", "NEST",
    ],
    "Consumer Non-Durables": [
        "PANI", "ICBP", "HMSP", "UNVR", "INDF", "MYOR", "FAPA", "GGRM", "POLU", "YUPI",
        "ULTJ", "GOOD", "STTP", "MLBI", "CLEO", "FISH", "SIMP", "ADES", "BEEF", "DMND",
        "PSGO", "ROTI", "CBUT", "VICI", "KEJU", "UNIC", "WIIM", "UCID", "KINO", "STRK",
        "DLTA", "CEKA", "EURO", "SKLT", "CAMP", "TCID", "AISA", "COCO", "SKBM", "SURI",
        "GUNA", "TRIS", "MAXI", "WINE", "CRAB", "ZONE", "BEER", "BELL", "SRSN", "NAYZ",
        "MBTO", "ITIC", "BOBA", "WAPO", "DSFI", "IKAN", "SOUL", "NASI", "ENZO", "BATA",
        "BIMA", "RICY", "PCAR", "BRRC", "KLIN", "ISEA", "TAYS",
    ],
    "Communications": [
        "TLKM", "ISAT", "MTEL", "EXCL", "MORA", "DATA", "LINK", "CENT", "INET", "GHON",
        "MSKY", "JAST", "DNET",
    ],
    "Consumer Services": [
        "EMTK", "FILM", "MSIN", "SCMA", "BUVA", "CNMA", "ALII", "JSPT", "CLAY", "INPP",
        "FORE", "MAPB", "PNIN", "BHIT", "SINI", "BMTR", "BLTZ", "FAST", "RAAM", "IPTV",
        "MINA", "ENAK", "OMRE", "ARTA", "MDIA", "PKST", "NATO", "BOLA", "FITT", "SHID",
        "PANR", "PJAA", "PZZA", "PNSE", "VERN", "ESTA", "VIVA", "BAYU", "IBOS", "PDES",
        "KBLV", "EAST", "SOTS", "HAJJ", "HRME", "ABBA", "CSMI", "PTSP", "MARI", "SNLK",
        "TMPO", "DFAM", "PGLI", "RBMS", "ICON", "PLAN", "GRPH", "BAIK", "KDTN", "RAFI",
        "KAQI",
    ],
    "Retail Trade": [
        "AMRT", "BELI", "MDIY", "MAPI", "BUKA", "MAPA", "MIDI", "ACES", "LPPF", "RALS",
        "DAYA", "MLPL", "HERO", "SONA", "BOGA", "CARS", "DEPO", "PMJS", "ERAL", "RANC",
        "BABY", "MPPA", "KONI", "UFOE", "ZATA", "MDRN", "DEWI", "ECII", "GLOB", "KIOS",
        "DOSS",
    ],
    "Health Services": [
        "SRAJ", "MIKA", "SILO", "HEAL", "PRAY", "CARE", "SAME", "MTMH", "PRDA", "WIRG",
        "BMHS", "RSCH", "PRIM", "DGNS", "DKHH",
    ],
    "Producer Manufacturing": [
        "IMPC", "AUTO", "SMSM", "DRMA", "ARNA", "TOTO", "BOLT", "BUKK", "KMTR", "SCCO",
        "INDS", "KBLI", "MKAP", "VOKS", "TBMS", "JECC", "HALO", "CCSI", "KBLM", "AMIN",
        "BINO", "KRYA", "HOPE", "LION", "PSSI", "IKAI", "APII", "GEMA", "CINT", "ESIP",
        "SEMA", "KUAS", "PART", "INCF", "OBAT", "ASPR", "ISAP", "AEGS", "SAPX", "KARW",
        "BSML", "PTIS", "HELI", "PURA",
    ],
    "Transportation": [
        "TCPI", "JSMR", "SHIP", "RMKE", "GIAA", "CMNP", "TMAS", "CBRE", "SMDR", "CASS",
        "BIRD", "PORT", "BESS", "GMFI", "ELPI", "BULL", "MBSS", "HATM", "HUMI", "TPMA",
        "IPCC", "WINS", "SOCI", "GTSI", "IPCM", "CMPP", "MITI", "TAMU", "BLTA", "NELY",
        "BBRM", "GTRA", "HAIS", "RIGS", "KLAS", "WEHA", "TAXI", "LAJU", "SAFE", "TRUK",
        "TNCA", "KJEN", "PPGL", "SDMY", "JAYA", "LRNA", "ARKA", "CANI", "PSAT", "MPXL",
        "LOPI", "BOAT", "BLOG",
    ],
    "Industrial Services": [
        "PTRO", "SSIA", "BNBR", "IBST", "BALI", "CTBN", "ARKO", "RONY", "TEBE", "TOTL",
        "PBSA", "ACST", "PTPP", "ADHI", "NRCA", "KETR", "BBSS", "ASLI", "JKON", "UNIQ",
        "MHKI", "IDPR", "BEST", "WTON", "PPRE", "PTPW", "BDKR", "PKPK", "WEGE", "DGIK",
        "LEAD", "APEX", "ATLA", "SMKM", "LCKM", "MIRA", "WOWS", "RUIS", "MTPS", "RGAS",
        "KOKA", "SOLA", "INTA",
    ],
    "Distribution Services": [
        "CMRY", "AKRA", "TSPC", "ERAA", "EPMT", "TGKA", "MPMX", "HEXA", "MDLA", "IATA",
        "CSAP", "SPTO", "BUAH", "LTLS", "BIKE", "MMIX", "ASLC", "SMGA",
    ],
    "Health Technology": [
        "KLBF", "SIDO", "SOHO", "PYFA", "OMED", "KAEF", "DVLA", "MERK", "IKPM", "MEDS",
        "CHEK", "SQBI",
    ],
    "Consumer Durables": [
        "CITA", "VKTR", "HRTA", "IMAS", "GJTL", "WOOD", "POLI", "MGLV", "RODA", "GPRA",
        "UNTD", "KSIX", "DART", "SCNP", "GDYR", "TYRE", "NTBK", "MANG", "OLIV", "CAKK",
        "LMPI", "INTD", "LAND", "KICI", "BAPA", "TAMA", "SPRE",
    ],
    "Commercial Services": [
        "PNLF", "BPII", "MNCN", "BHAT", "FUTR", "DMMX", "JTPE", "OASA", "MKTR", "NETV",
        "DOOH", "SOSS", "KING", "LFLO", "FORU", "GOLF", "DYAN", "MUTU", "NANO", "LUCY",
        "HDIT", "IDEA", "BMBL", "NAIK", "HYGN", "CSRN", "MERI", "TOOL", "PADA", "MPIX",
    ],
    "Miscellaneous": [
        "RATU", "COIN",
    ],
    "Electronic Technology": [
        "MTDL", "PTSN", "AXIO", "IKBI", "LPIN", "ZYRX", "RCCC",
    ],
}


def get_sectors() -> list[str]:
    """Sector names in display order"""
    return list(IDX_SECTORS)


def get_sector_symbols(sector: str) -> list[str]:
    """
    Symbols of one sector (case-insensitive name match)

    Raises:
        ValidationError: Unknown sector
    """
    for name, symbols in IDX_SECTORS.items():
        if name.lower() == sector.strip().lower():
            return list(symbols)
    raise ValidationError(f"Unknown sector: {sector}", context={"available": len(IDX_SECTORS)})


def get_all_symbols() -> list[str]:
    """
    Every symbol across all sectors, deduplicated.

    Some codes are listed under more than one sector; the first occurrence
    keeps its position.
    """
    return list(dict.fromkeys(s for symbols in IDX_SECTORS.values() for s in symbols))
