from datetime import date

import pytest

from bicho.errors import NormalizationRejected
from bicho.lotteries import LotteryId
from bicho.services.extraction_service import Document, MultiStrategyExtractor
from bicho.services.format_detector import FormatDetector
from bicho.services.normalizer import ResultNormalizer, normalize_token

from helpers import result_page

DAY = date(2026, 10, 19)
normalizer = ResultNormalizer()


def test_normalize_token_widths():
    assert normalize_token("123", 4) == "0123"
    assert normalize_token("89012", 4) == "9012"
    assert normalize_token("4567", 4) == "4567"
    assert normalize_token("12a", 4) is None
    assert normalize_token(None, 4) is None


def test_positions_map_in_order_and_cap_at_prize_count():
    record = normalizer.normalize(
        ["1234", "123", "5678", "9012", "3456", "7890", "1111"],
        lottery_id=LotteryId.FEDERAL,
        draw_date=DAY,
        prize_count=5,
        source_url="https://a",
    )
    assert record.lottery_id == "FEDERAL"
    assert record.prizes == ("1234", "0123", "5678", "9012", "3456")
    assert record.source_url == "https://a"


def test_trailing_empty_positions_are_dropped():
    record = normalizer.normalize(["1234", None, None], lottery_id="FEDERAL", draw_date=DAY)
    assert record.prizes == ("1234",)


def test_no_populated_positions_is_rejected():
    with pytest.raises(NormalizationRejected):
        normalizer.normalize([None, None, None, None, None], lottery_id="FEDERAL", draw_date=DAY)
    with pytest.raises(NormalizationRejected):
        normalizer.normalize([], lottery_id="FEDERAL", draw_date=DAY)


def test_animal_and_dezena_helpers():
    record = normalizer.normalize(["1234", "0000", "0501"], lottery_id="FEDERAL", draw_date=DAY)
    assert record.dezenas == ("34", "00", "01")
    assert [a.name for a in record.animals()] == ["Cobra", "Vaca", "Avestruz"]
    details = record.details()
    assert [(p.position, p.centena, p.animal.group) for p in details] == [(1, "234", 9), (2, "000", 25), (3, "501", 1)]


def test_same_document_normalizes_identically():
    doc_html = result_page(["1234", "5678", "9012", "3456", "7890"])

    def run():
        document = Document("https://a", doc_html)
        guess = FormatDetector().detect(document.text, "FEDERAL")
        extraction = MultiStrategyExtractor().extract(document, guess)
        return normalizer.normalize(
            extraction.positions,
            lottery_id="FEDERAL",
            draw_date=DAY,
            digit_width=guess.digit_width,
            prize_count=guess.expected_prize_count,
            source_url=document.url,
        )

    first, second = run(), run()
    assert first == second
    assert repr(first) == repr(second)
