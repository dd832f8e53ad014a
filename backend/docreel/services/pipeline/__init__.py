"""
Pipeline stages

    script -> narration scripts per chunk (LLM with deterministic fallback)
    video  -> one generated clip per chunk (fal.ai or mock progression)
    export -> one stitched video per session
"""
