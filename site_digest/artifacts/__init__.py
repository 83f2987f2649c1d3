"""site_digest.artifacts: генераторы текстовых (.md) и графических (.jpg) артефактов."""
