# ============================================================================
# FILE: tests/conftest.py
# ============================================================================
"""
Pytest configuration and shared fixtures for testing.
"""

import pytest

from src.health_ingestion.config import SyncSettings
from src.health_ingestion.sync import FileStore


# ============================================================================
# REPORT TEXT
# ============================================================================

@pytest.fixture
def patient_page_text():
    """Flattened header page of a stool microbiome report"""
    return (
        "Paciente: Maria Silva Santos Protocolo: 123456 "
        "Data de nascimento: 15/03/1985 Data da coleta: 10/01/2024 "
        "Prescritor: Dr. João Pereira Idade: 38 anos Peso: 65,5 Kg "
        "Altura: 168 Tipo de amostra: Fezes "
        "PROVA COPROLÓGICA Consistência: Tipo 4 pH: 6,87 "
        "Gorduras: < 1,0 g/100g Proteínas: 2,5 Carboidratos: 1,2"
    )


@pytest.fixture
def biomarker_page_text():
    """Biomarker table as flattened text"""
    return (
        "BIOMARCADORES "
        "Calprotectina: 45,00 μg/g (Normal: <50 μg/g) "
        "Zonulina: 80,5 ng/mL (Normal: <107 ng/mL) "
        "Elastase: >500 μg/g (Normal: >200 μg/g)"
    )


@pytest.fixture
def taxonomy_page_text():
    """Taxonomy table page: two spaced rows and one run-together row"""
    return (
        "Reino Filo Classe Ordem Família Gênero Espécie Quantidade % "
        "Bacteria Firmicutes Clostridia Clostridiales Lachnospiraceae Blautia obeum 4889 17,50% "
        "Bacteria Bacteroidetes Bacteroidia Bacteroidales Bacteroidaceae Bacteroides fragilis 1200 5,25% "
        "Archaea Euryarchaeota Methanobacteria Methanobacteriales Methanobacteriaceae "
        "Methanobrevibacter smithii 310 1,10%"
    )


@pytest.fixture
def sample_report_pages(patient_page_text, biomarker_page_text, taxonomy_page_text):
    """Three-page report as page texts"""
    return [
        patient_page_text,
        biomarker_page_text + " Candida albicans 120 (2,50%)",
        taxonomy_page_text,
    ]


# ============================================================================
# PDF
# ============================================================================

@pytest.fixture
def make_pdf(tmp_path):
    """Factory writing a PDF with one list of lines per page"""
    from reportlab.pdfgen import canvas
    from reportlab.lib.pagesizes import A4

    def _make(pages, name="report.pdf"):
        pdf_path = tmp_path / name
        c = canvas.Canvas(str(pdf_path), pagesize=A4)
        for lines in pages:
            y = 800
            for line in lines:
                c.drawString(50, y, line)
                y -= 20
            c.showPage()
        c.save()
        return pdf_path

    return _make


# ============================================================================
# WHOOP SYNC
# ============================================================================

@pytest.fixture
def sync_settings_fast():
    """Sync settings with every delay set to zero"""
    return SyncSettings(
        WHOOP_API_BASE="https://whoop.test/v1",
        WHOOP_ACCESS_TOKEN=None,
        INTER_PAGE_DELAY_SECONDS=0.0,
        INTER_TYPE_DELAY_SECONDS=0.0,
        RATE_LIMIT_DELAY_SECONDS=0.0,
        BACKOFF_MAX_SECONDS=0.0,
        MAX_RATE_LIMIT_RETRIES=2,
        MAX_SERVER_ERROR_RETRIES=2,
    )


@pytest.fixture
def whoop_store(tmp_path):
    """FileStore rooted in a temporary directory"""
    return FileStore(tmp_path / "whoop")


@pytest.fixture
def sleeps():
    """Recorder standing in for asyncio.sleep"""
    delays = []

    async def _sleep(seconds):
        delays.append(seconds)

    _sleep.delays = delays
    return _sleep


class FakeResponse:
    """Minimal aiohttp response: status, reason, headers, json(), text()"""

    def __init__(self, status=200, payload=None, text="", headers=None, reason=None):
        self.status = status
        self.reason = reason or ("OK" if status < 400 else "Error")
        self.headers = headers or {}
        self._payload = payload if payload is not None else {}
        self._text = text

    async def json(self, content_type=None):
        return self._payload

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


class FakeSession:
    """
    Stand-in for aiohttp.ClientSession.

    Responses are served in order; an exception instance in the queue is
    raised from get() instead.
    """

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []
        self.closed = False

    def get(self, url, params=None, headers=None):
        self.calls.append({
            "url": url,
            "params": dict(params or {}),
            "headers": dict(headers or {}),
        })
        if not self.responses:
            raise AssertionError(f"Unexpected request to {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self):
        self.closed = True


def make_records(count, start_id=1, day=1, id_field="id"):
    """WHOOP-like records, one per hour, newest first"""
    records = []
    for i in range(count):
        hour = (count - 1 - i) % 24
        records.append({
            id_field: start_id + i,
            "created_at": f"2024-01-{day:02d}T{hour:02d}:00:00.000Z",
            "score": {"value": i},
        })
    return records


def page(records, next_token=None):
    payload = {"records": records}
    if next_token:
        payload["next_token"] = next_token
    return FakeResponse(200, payload)


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def whoop_page():
    return page


@pytest.fixture
def whoop_records():
    return make_records
