"""Console front end: a rich view over a CampaignSession."""
