"""
Wardrobe catalog sync: clothing items and outfits stored in Supabase.
"""
