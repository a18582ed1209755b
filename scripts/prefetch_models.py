"""Save multilingual embedding models under the models directory for offline use.

The container resolves `MATERIALSEARCH_EMBEDDING_MODEL` against this directory
first, so a prefetched model is picked up without network access.
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path

from sentence_transformers import SentenceTransformer

from infrastructure.config import ContainerConfig
from infrastructure.embedding.sentence_transformers_embedder import DEFAULT_MULTILINGUAL_MODEL
from ui.logging_utils import setup_logging

logger = logging.getLogger(__name__)

CANDIDATE_MODELS = (
    DEFAULT_MULTILINGUAL_MODEL,
    "intfloat/multilingual-e5-base",
)

# A Thai/English pair that a usable model must place close together.
_PROBE = ("กรดไฮยาลูโรนิก ให้ความชุ่มชื้น", "hyaluronic acid for moisturizing")


def save_model(model_name: str, models_dir: Path) -> Path:
    target = models_dir / model_name
    if target.is_dir():
        logger.info("%s already present at %s", model_name, target)
        return target
    model = SentenceTransformer(model_name)
    target.parent.mkdir(parents=True, exist_ok=True)
    model.save(str(target))
    logger.info("Saved %s to %s", model_name, target)
    return target


def probe_model(path: Path) -> float:
    """Cosine similarity of the Thai/English probe pair under the saved model."""

    model = SentenceTransformer(str(path))
    thai, english = model.encode(list(_PROBE), normalize_embeddings=True, show_progress_bar=False)
    return float((thai * english).sum())


def parse_args(default_dir: str) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--models-dir", default=default_dir, help=f"Target directory (default: {default_dir})")
    parser.add_argument(
        "--model",
        action="append",
        dest="models",
        help="Hugging Face model id; may repeat. Defaults to the configured or built-in candidates.",
    )
    parser.add_argument("--probe", action="store_true", help="Report Thai/English similarity for each model")
    return parser.parse_args()


def main() -> None:
    setup_logging()
    cfg = ContainerConfig.from_env()
    args = parse_args(cfg.models_dir)
    models_dir = Path(args.models_dir).expanduser()
    models = args.models or ([cfg.embedding_model] if cfg.embedding_model else list(CANDIDATE_MODELS))

    for model_name in models:
        path = save_model(model_name, models_dir)
        if args.probe:
            print(f"{model_name}: thai/english similarity {probe_model(path):.3f}")
        else:
            print(f"{model_name} -> {path}")


if __name__ == "__main__":
    main()
