from __future__ import annotations

import pytest


def build_coordinator_row(**overrides) -> dict:
    """A coordinator sheet row using the headers field teams actually send."""
    row = {
        "Provinsi": "DKI Jakarta",
        "Kab/Kota": "Jakarta Timur",
        "Kecamatan": "Matraman",
        "Kelurahan": "Pisangan Baru",
        "Nama": "Budi Santoso",
        "NIK": "3175010101900001",
        "No. HP": "081234567890",
        "TPS": "5",
        "Alamat": "Jl. Pisangan Baru No. 1",
    }
    row.update(overrides)
    return row


def build_volunteer_row(**overrides) -> dict:
    row = {
        "Nama Lengkap": "Siti Aminah",
        "NIK": "3175014101950002",
        "No HP": "081298765432",
        "Alamat": "Jl. Utan Kayu No. 7",
        "TPS": "12",
        "Ormas": "",
    }
    row.update(overrides)
    return row


@pytest.fixture
def coordinator_row():
    return build_coordinator_row


@pytest.fixture
def volunteer_row():
    return build_volunteer_row
