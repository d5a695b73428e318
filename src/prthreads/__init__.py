"""prthreads: review GitHub pull request threads from your terminal."""
