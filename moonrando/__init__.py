"""moonrando — seeded object-placement randomizer for a fixed-size game image.

Subpackages, leaves first:

  geometry     Shapes, regions and the two point samplers.
  space        Interval sets and the free-space allocator.
  rules        Rule tables (regions, spawn resolvers, hitboxes, bindings).
  placer       Collision index, placement engine, misalignment merge.
  binding      Attribute binder (nearest directional neighbour).
  procedures   Stage-specific fix-ups run after placement.
  features     Payload insertions (level order, music).
  image        Image metadata, object codec interface, checksum.
  randomizer   One randomize() run over an image.
"""
