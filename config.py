# config.py
import os
from typing import List, Optional, Tuple

from pydantic_settings import BaseSettings, SettingsConfigDict

from src.ransac.models import DEFAULT_TIME_SCALE_MS, LineFitParams


class Settings(BaseSettings):
    """
    프로젝트 전역 설정 관리 (Pydantic V2)
    .env 파일에서 환경 변수를 로드하며, 없을 경우 기본값을 사용합니다.
    """

    # Project Info
    PROJECT_NAME: str = "Reservoir_RANSAC"
    VERSION: str = "1.0.0"

    # Storage Settings
    DATA_ROOT: str = "data"
    LOG_DIR: str = "./logs"

    # Input Columns
    TIME_COLUMN: str = "Time"
    VALUE_COLUMN: str = "water_level_masl"

    # Line Fit Settings
    BUFFER_DISTANCE: float = 1.0
    NUM_RANDOM_SAMPLINGS: int = 3000 - 4
    TIME_SCALE_MS: float = DEFAULT_TIME_SCALE_MS
    PEAK_LOOKAROUND: float = 0.2
    PEAK_MIN_DENSITY: float = 30.0
    PEAK_POWER_FLOOR: float = 1000.0
    SEED_PAIRS: List[Tuple[int, int]] = []  # env에서는 JSON으로: [[600, 850], [1700, 5400]]
    RANDOM_SEED: Optional[int] = None

    # .env 파일 로드 설정
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    def line_fit_params(self, **overrides) -> LineFitParams:
        """설정값을 검증된 LineFitParams로 변환 (overrides가 우선)"""
        values = dict(
            buffer_distance=self.BUFFER_DISTANCE,
            num_random_samples=self.NUM_RANDOM_SAMPLINGS,
            time_scale=self.TIME_SCALE_MS,
            lookaround=self.PEAK_LOOKAROUND,
            min_density=self.PEAK_MIN_DENSITY,
            power_floor=self.PEAK_POWER_FLOOR,
            seed_pairs=tuple(tuple(p) for p in self.SEED_PAIRS),
            random_seed=self.RANDOM_SEED,
        )
        values.update(overrides)
        return LineFitParams(**values)


# 싱글톤 인스턴스 생성
settings = Settings()

# 디렉토리 자동 생성 (초기화 시점 실행)
os.makedirs(settings.DATA_ROOT, exist_ok=True)
os.makedirs(settings.LOG_DIR, exist_ok=True)
