"""Session booking & availability core."""
