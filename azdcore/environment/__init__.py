"""Named environments backed by .env and config files."""