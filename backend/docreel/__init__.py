"""
DocReel backend - documents to narrated video clips
"""
