"""
Campaign Service

Marketing campaign dashboard backend providing:
- Campaign records with an append-only activity log
- Status workflow: generation, review, approval, publish, archive
- Review-request and approval emails via the notification workflow
- Unified KPI analytics across email, Facebook and Google Ads
- Product search for campaign product picking

Port: 8240
"""

__version__ = "1.0.0"
__service__ = "campaign_service"
