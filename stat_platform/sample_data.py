"""
stat_platform/sample_data.py
============================
Complete 2020–2024 sample dataset used by the demo store and the tests.
"""
from __future__ import annotations
from typing import List, Optional

from .types import Indicator, YearlyValue

SAMPLE_INDICATORS: List[Indicator] = [
    # A. Perpustakaan
    Indicator("ind-lib-1", "Perpustakaan", "Jumlah Pengunjung Perpustakaan", "number", "Orang"),
    Indicator("ind-lib-2", "Perpustakaan", "Jumlah Koleksi Buku", "number", "Eksemplar"),
    Indicator("ind-lib-3", "Perpustakaan", "Akses Layanan E-Book", "number", "Akses"),
    Indicator("ind-lib-4", "Perpustakaan", "Perpustakaan Desa Binaan", "number", "Unit"),
    # B. Kearsipan
    Indicator("ind-arc-1", "Kearsipan", "Jumlah Arsip Tertata", "number", "Berkas"),
    Indicator("ind-arc-2", "Kearsipan", "Digitalisasi Arsip Vital", "number", "File PDF"),
    Indicator("ind-arc-3", "Kearsipan", "Layanan Peminjaman Arsip", "number", "Permintaan"),
    Indicator("ind-arc-4", "Kearsipan", "Pembinaan Kearsipan OPD", "number", "OPD"),
    # C. Umum
    Indicator("ind-gen-1", "Umum", "Indeks Kepuasan Masyarakat (IKM)", "percentage", "%"),
    Indicator("ind-gen-2", "Umum", "Realisasi Anggaran", "percentage", "%"),
    Indicator("ind-gen-3", "Umum", "Jumlah Pegawai ASN", "number", "Orang"),
    Indicator("ind-gen-4", "Umum", "Kegiatan Bimtek Pegawai", "number", "Kegiatan"),
]


def _generate_yearly_values() -> List[YearlyValue]:
    data: List[YearlyValue] = []

    def push(ind_id: str, year: int, value: float, note: Optional[str] = None) -> None:
        data.append(YearlyValue(f"val-{ind_id}-{year}", ind_id, year, value, note))

    # Pengunjung (recovering from Covid)
    push("ind-lib-1", 2020, 5500, "Pandemi Covid-19")
    push("ind-lib-1", 2021, 8200, "Mulai pulih")
    push("ind-lib-1", 2022, 14500, "Kunjungan sekolah dibuka")
    push("ind-lib-1", 2023, 22400, "Program Wisata Literasi")
    push("ind-lib-1", 2024, 25600, "Target terlampaui")

    # Koleksi buku (steady)
    push("ind-lib-2", 2020, 12000)
    push("ind-lib-2", 2021, 13500)
    push("ind-lib-2", 2022, 15000)
    push("ind-lib-2", 2023, 16800, "Pengadaan DAK")
    push("ind-lib-2", 2024, 18200)

    # E-Book (exponential)
    push("ind-lib-3", 2020, 1500)
    push("ind-lib-3", 2021, 4800, "Peluncuran Aplikasi")
    push("ind-lib-3", 2022, 12500)
    push("ind-lib-3", 2023, 28000, "Sosialisasi Masif")
    push("ind-lib-3", 2024, 42000)

    # Perpustakaan desa (slow)
    push("ind-lib-4", 2020, 12)
    push("ind-lib-4", 2021, 15)
    push("ind-lib-4", 2022, 18)
    push("ind-lib-4", 2023, 20)
    push("ind-lib-4", 2024, 22)

    # Arsip tertata (linear)
    push("ind-arc-1", 2020, 5000)
    push("ind-arc-1", 2021, 7500)
    push("ind-arc-1", 2022, 11000)
    push("ind-arc-1", 2023, 14500)
    push("ind-arc-1", 2024, 18000)

    # Digitalisasi arsip (scanner outage in 2022)
    push("ind-arc-2", 2020, 200)
    push("ind-arc-2", 2021, 1500)
    push("ind-arc-2", 2022, 1800, "Kendala Scanner Rusak")
    push("ind-arc-2", 2023, 5600, "Alat Baru")
    push("ind-arc-2", 2024, 9200)

    # Layanan arsip (stable)
    push("ind-arc-3", 2020, 120)
    push("ind-arc-3", 2021, 145)
    push("ind-arc-3", 2022, 160)
    push("ind-arc-3", 2023, 155)
    push("ind-arc-3", 2024, 175)

    push("ind-arc-4", 2020, 10)
    push("ind-arc-4", 2021, 15)
    push("ind-arc-4", 2022, 25)
    push("ind-arc-4", 2023, 30)
    push("ind-arc-4", 2024, 35)

    # IKM
    push("ind-gen-1", 2020, 78.5, "Kurang Baik")
    push("ind-gen-1", 2021, 81.2)
    push("ind-gen-1", 2022, 84.5)
    push("ind-gen-1", 2023, 87.8, "Sangat Baik")
    push("ind-gen-1", 2024, 89.4)

    push("ind-gen-2", 2020, 88.5)
    push("ind-gen-2", 2021, 91.0)
    push("ind-gen-2", 2022, 92.5)
    push("ind-gen-2", 2023, 95.2)
    push("ind-gen-2", 2024, 94.8)  # provisional

    # Pegawai ASN (stable)
    push("ind-gen-3", 2020, 45)
    push("ind-gen-3", 2021, 44)
    push("ind-gen-3", 2022, 46)
    push("ind-gen-3", 2023, 46)
    push("ind-gen-3", 2024, 48)

    return data


SAMPLE_YEARLY_VALUES: List[YearlyValue] = _generate_yearly_values()
