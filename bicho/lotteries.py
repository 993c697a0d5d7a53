"""Static lottery catalogue: source URLs, schedules and expected result formats."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum


class LotteryId(str, Enum):
    FEDERAL = "FEDERAL"
    RIO_DE_JANEIRO = "RIO_DE_JANEIRO"
    LOOK_GO = "LOOK_GO"
    PT_SP = "PT_SP"
    NACIONAL = "NACIONAL"
    MALUQUINHA_RJ = "MALUQUINHA_RJ"
    LOTEP = "LOTEP"
    LOTECE = "LOTECE"
    MINAS_GERAIS = "MINAS_GERAIS"
    BOA_SORTE = "BOA_SORTE"
    LOTERIAS_CAIXA = "LOTERIAS_CAIXA"


@dataclass(frozen=True)
class KnownFormat:
    prizes: int
    digits: int


@dataclass(frozen=True)
class LotteryConfig:
    lottery_id: LotteryId
    display_name: str
    state: str
    schedule: tuple[str, ...]
    primary_url: str
    backup_urls: tuple[str, ...] = ()
    expected_prizes: int = 5
    digits: int = 4
    keywords: tuple[str, ...] = field(default_factory=tuple)

    @property
    def urls(self) -> tuple[str, ...]:
        """Primary URL first, then backups in listed order."""

        return (self.primary_url, *self.backup_urls)


_RF = "https://www.resultadofacil.com.br"
_RF_AMP = "https://amp.resultadofacil.com.br"
_JB = "https://jogodobicho.net"

LOTTERIES: dict[LotteryId, LotteryConfig] = {
    cfg.lottery_id: cfg
    for cfg in (
        LotteryConfig(
            lottery_id=LotteryId.FEDERAL,
            display_name="FEDERAL",
            state="BRASIL",
            schedule=("20:00",),
            primary_url=f"{_RF_AMP}/federal",
            backup_urls=(f"{_RF}/federal", f"{_JB}/federal"),
            keywords=("federal", "resultado federal", "loteria federal"),
        ),
        LotteryConfig(
            lottery_id=LotteryId.RIO_DE_JANEIRO,
            display_name="RIO DE JANEIRO",
            state="RJ",
            schedule=("14:00", "19:00"),
            primary_url=f"{_RF_AMP}/rio-de-janeiro",
            backup_urls=(f"{_RF}/rio-de-janeiro", f"{_JB}/rio-de-janeiro", "https://www.jb.com.br/rio-de-janeiro"),
            keywords=("rio de janeiro", "rio", "bicho rio", "resultado rio"),
        ),
        LotteryConfig(
            lottery_id=LotteryId.LOOK_GO,
            display_name="LOOK GO",
            state="GO",
            schedule=("16:00",),
            primary_url=f"{_RF_AMP}/goias",
            backup_urls=(f"{_RF}/goias", f"{_JB}/goias"),
            keywords=("look go", "goiás", "go", "bicho goiás"),
        ),
        LotteryConfig(
            lottery_id=LotteryId.PT_SP,
            display_name="PT SÃO PAULO",
            state="SP",
            schedule=("14:00", "20:00"),
            primary_url=f"{_RF_AMP}/sao-paulo",
            backup_urls=(f"{_RF}/sao-paulo", f"{_JB}/sao-paulo", "https://www.jb.com.br/sao-paulo"),
            keywords=("são paulo", "sp", "pt sp", "bicho sp"),
        ),
        LotteryConfig(
            lottery_id=LotteryId.NACIONAL,
            display_name="NACIONAL",
            state="BRASIL",
            schedule=("19:00",),
            primary_url=f"{_RF_AMP}/nacional",
            backup_urls=(f"{_RF}/nacional", f"{_JB}/nacional"),
            keywords=("nacional", "bicho nacional", "resultado nacional"),
        ),
        LotteryConfig(
            lottery_id=LotteryId.MALUQUINHA_RJ,
            display_name="MALUQUINHA RIO",
            state="RJ",
            schedule=("13:00", "18:00"),
            primary_url=f"{_RF_AMP}/maluquinha-rio",
            backup_urls=(f"{_RF}/maluquinha-rio", f"{_JB}/maluquinha"),
            expected_prizes=7,
            keywords=("maluquinha", "maluquinha rio", "bicho maluquinha"),
        ),
        LotteryConfig(
            lottery_id=LotteryId.LOTEP,
            display_name="LOTEP",
            state="PI",
            schedule=("15:00",),
            primary_url=f"{_RF_AMP}/piaui",
            backup_urls=(f"{_RF}/piaui", "https://lotep.pi.gov.br"),
            keywords=("lotep", "piauí", "loteria piauí"),
        ),
        LotteryConfig(
            lottery_id=LotteryId.LOTECE,
            display_name="LOTECE",
            state="CE",
            schedule=("16:00",),
            primary_url=f"{_RF_AMP}/ceara",
            backup_urls=(f"{_RF}/ceara", "https://www.lotece.ce.gov.br"),
            expected_prizes=10,
            keywords=("lotece", "ceará", "loteria ceará"),
        ),
        LotteryConfig(
            lottery_id=LotteryId.MINAS_GERAIS,
            display_name="MINAS GERAIS",
            state="MG",
            schedule=("13:00", "19:00"),
            primary_url=f"{_RF_AMP}/minas-gerais",
            backup_urls=(f"{_RF}/minas-gerais", f"{_JB}/minas-gerais"),
            keywords=("minas gerais", "minas", "bicho minas"),
        ),
        LotteryConfig(
            lottery_id=LotteryId.BOA_SORTE,
            display_name="BOA SORTE",
            state="PB",
            schedule=("14:00",),
            primary_url=f"{_RF_AMP}/paraiba",
            backup_urls=(f"{_RF}/paraiba", f"{_JB}/paraiba"),
            keywords=("boa sorte", "paraíba", "bicho paraíba"),
        ),
        LotteryConfig(
            lottery_id=LotteryId.LOTERIAS_CAIXA,
            display_name="LOTERIAS CAIXA",
            state="BRASIL",
            schedule=("20:00",),
            primary_url="https://loterias.caixa.gov.br",
            backup_urls=("https://www.loterias.caixa.gov.br", "https://resultadofacil.com.br/loterias-caixa"),
            keywords=("loterias caixa", "caixa", "loteria federal"),
        ),
    )
}


def build_format_keywords(lotteries: Mapping[LotteryId, LotteryConfig]) -> dict[str, KnownFormat]:
    """Keyword -> format table taken from each lottery's keywords.

    Longer keywords come first so "maluquinha rio" wins over "rio". A keyword
    listed by two lotteries keeps the first one's format.
    """

    pairs = [
        (keyword, KnownFormat(prizes=cfg.expected_prizes, digits=cfg.digits))
        for cfg in lotteries.values()
        for keyword in cfg.keywords
    ]
    table: dict[str, KnownFormat] = {}
    for keyword, fmt in sorted(pairs, key=lambda p: -len(p[0])):
        table.setdefault(keyword, fmt)
    return table


# Matched as whole words against the lottery id and the document text.
FORMAT_KEYWORDS = build_format_keywords(LOTTERIES)


def parse_lottery_id(raw: str) -> LotteryId:
    """Parse a lottery identifier, accepting any case and '-' for '_'."""

    try:
        return LotteryId(str(raw).strip().upper().replace("-", "_"))
    except ValueError as exc:
        raise ValueError(f"Unknown lottery: {raw}") from exc


def lottery_key(lottery_id: LotteryId | str) -> str:
    """Plain string key used for storage and logs."""

    if isinstance(lottery_id, LotteryId):
        return lottery_id.value
    return str(lottery_id)
